"""Timestamp helpers.

All timestamps inside the engine are timezone-aware UTC ``datetime`` objects.
Naive values coming from callers are interpreted as UTC.
"""

from datetime import datetime

import arrow


def utcnow() -> datetime:
    return arrow.utcnow().datetime


def as_utc(value: datetime | str) -> datetime:
    """Normalize a datetime or ISO 8601 string to an aware UTC datetime."""
    return arrow.get(value).to("utc").datetime


def as_utc_or_none(value: datetime | str | None) -> datetime | None:
    return None if value is None else as_utc(value)
