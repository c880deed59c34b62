"""Event-sourced workflow engine for clinic receptions."""

from .event_bus import EventDispatcher, EventHandler, HandlerRegistry
from .event_store import EventLog, EventSnapshot, EventStatistics
from .events import EventFilterCriteria, EventProcessingResult, EventReplayResult, HandlerResult, WorkflowEvent, WorkflowEventType
from .results import OperationResult
from .settings import WorkflowSettings, get_settings
from .workflow import StateTransitionResult, TransitionTable, WorkflowCoordinator, WorkflowState

__version__ = "0.1.0"

__all__ = [
    "EventDispatcher",
    "EventFilterCriteria",
    "EventHandler",
    "EventLog",
    "EventProcessingResult",
    "EventReplayResult",
    "EventSnapshot",
    "EventStatistics",
    "HandlerRegistry",
    "HandlerResult",
    "OperationResult",
    "StateTransitionResult",
    "TransitionTable",
    "WorkflowCoordinator",
    "WorkflowEvent",
    "WorkflowEventType",
    "WorkflowSettings",
    "WorkflowState",
    "get_settings",
]
