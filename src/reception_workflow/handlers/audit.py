"""Audit and analytics handlers."""

import threading
from collections import Counter

from loguru import logger

from reception_workflow.event_bus.core import EventHandler
from reception_workflow.events.types import HandlerResult, WorkflowEvent, WorkflowEventType


class AuditLoggingHandler(EventHandler):
    """Writes one audit line per event to the ``audit`` logger channel.

    Works both as a sync and as an async handler.
    """

    def __init__(self):
        self._audit = logger.bind(channel="audit")

    def handle(self, event: WorkflowEvent) -> HandlerResult:
        entry = {
            "event_id": event.event_id,
            "aggregate_id": event.aggregate_id,
            "event_type": str(event.event_type),
            "user_id": event.user_id,
            "timestamp": event.timestamp.isoformat(),
        }
        self._audit.info("audit {event_type} aggregate={aggregate_id} user={user_id}", **entry)
        return HandlerResult.succeeded(self.name, entry)


class AnalyticsHandler(EventHandler):
    """Keeps per-type event counters for the process."""

    def __init__(self):
        self._counts: Counter[WorkflowEventType] = Counter()
        self._lock = threading.Lock()

    @property
    def counts(self) -> dict[WorkflowEventType, int]:
        return dict(self._counts)

    async def handle(self, event: WorkflowEvent) -> HandlerResult:
        with self._lock:
            self._counts[event.event_type] += 1
            total = self._counts[event.event_type]
        logger.debug("Analytics: {event_type} seen {count} times", event_type=event.event_type, count=total)
        return HandlerResult.succeeded(self.name, {"event_type": str(event.event_type), "count": total})
