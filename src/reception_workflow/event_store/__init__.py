"""Process-local event log with snapshotting."""

from .models import EventSnapshot, EventStatistics
from .store import EventLog

__all__ = ["EventLog", "EventSnapshot", "EventStatistics"]
