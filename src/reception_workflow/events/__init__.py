"""Event models for the reception workflow.

Events are the primary way the workflow narrates what happened to a
reception; every state-changing occurrence is stored as a ``WorkflowEvent``
and fanned out to the handlers registered for its type.
"""

from reception_workflow.events.types import (
    EventFilterCriteria,
    EventProcessingResult,
    EventReplayItem,
    EventReplayResult,
    HandlerResult,
    WorkflowEvent,
    WorkflowEventType,
)

__all__ = [
    "EventFilterCriteria",
    "EventProcessingResult",
    "EventReplayItem",
    "EventReplayResult",
    "HandlerResult",
    "WorkflowEvent",
    "WorkflowEventType",
]
