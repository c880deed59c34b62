"""Identifier generation for events and snapshots."""

import secrets
import string
import time
import uuid


def new_event_id() -> str:
    """Return a globally unique event identifier (UUID4, canonical form)."""
    return str(uuid.uuid4())


def new_snapshot_id(length: int = 20) -> str:
    """Return a sortable, readable snapshot identifier.

    The identifier is ``snap_`` followed by the current millisecond timestamp in
    base36 and a random alphanumeric tail, so identifiers created later sort
    after earlier ones when compared as strings of equal length.

    Args:
        length: Length of the part after the ``snap_`` prefix (default: 20)

    Returns:
        The generated identifier
    """
    timestamp = to_base36(int(time.time() * 1000))

    random_chars = string.ascii_letters + string.digits
    random_part = "".join(secrets.choice(random_chars) for _ in range(length))

    return "snap_" + (timestamp + random_part)[:length].ljust(length, "0")


def to_base36(number: int) -> str:
    """Convert a non-negative number to its base36 representation."""
    alphabet = string.digits + string.ascii_lowercase
    base36 = ""

    while number:
        number, i = divmod(number, 36)
        base36 = alphabet[i] + base36

    return base36 or "0"
