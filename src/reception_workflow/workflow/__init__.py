"""Reception state machine and workflow coordination."""

from .audit import TransitionAuditSink, TransitionHistory
from .coordinator import WorkflowCoordinator
from .models import StateTransition, StateTransitionResult
from .rules import (
    GuardResult,
    TransitionGuard,
    TransitionGuards,
    TransitionHooks,
    TransitionRequest,
    TransitionValidationResult,
)
from .state_machine import ALLOWED_TRANSITIONS, STATE_EVENTS, TransitionTable, WorkflowState

__all__ = [
    "ALLOWED_TRANSITIONS",
    "STATE_EVENTS",
    "GuardResult",
    "StateTransition",
    "StateTransitionResult",
    "TransitionAuditSink",
    "TransitionGuard",
    "TransitionGuards",
    "TransitionHistory",
    "TransitionHooks",
    "TransitionRequest",
    "TransitionTable",
    "TransitionValidationResult",
    "WorkflowCoordinator",
    "WorkflowState",
]
