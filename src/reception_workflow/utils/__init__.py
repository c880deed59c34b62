"""Utility helpers for the workflow engine."""

from .id_generator import new_event_id, new_snapshot_id
from .timestamps import as_utc, as_utc_or_none, utcnow

__all__ = ["as_utc", "as_utc_or_none", "new_event_id", "new_snapshot_id", "utcnow"]
