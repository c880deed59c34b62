"""Reception workflow states and the transition table.

The table is a fixed adjacency map from each non-terminal state to its legal
successors, plus a map from selected states to the domain events that
conventionally fire when that state is entered. Both are immutable after
construction.
"""

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from loguru import logger

from reception_workflow.events.types import WorkflowEventType
from reception_workflow.exceptions import IllegalTransitionError


class WorkflowState(StrEnum):
    """Lifecycle states of a reception, in intended order."""

    INITIALIZED = "Initialized"
    PATIENT_VERIFICATION = "PatientVerification"
    INSURANCE_VALIDATION = "InsuranceValidation"
    SERVICE_SELECTION = "ServiceSelection"
    PAYMENT_PROCESSING = "PaymentProcessing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ARCHIVED = "Archived"


ALLOWED_TRANSITIONS: Mapping[WorkflowState, frozenset[WorkflowState]] = MappingProxyType(
    {
        WorkflowState.INITIALIZED: frozenset({WorkflowState.PATIENT_VERIFICATION, WorkflowState.CANCELLED}),
        WorkflowState.PATIENT_VERIFICATION: frozenset({WorkflowState.INSURANCE_VALIDATION, WorkflowState.CANCELLED}),
        WorkflowState.INSURANCE_VALIDATION: frozenset({WorkflowState.SERVICE_SELECTION, WorkflowState.CANCELLED}),
        WorkflowState.SERVICE_SELECTION: frozenset({WorkflowState.PAYMENT_PROCESSING, WorkflowState.CANCELLED}),
        WorkflowState.PAYMENT_PROCESSING: frozenset({WorkflowState.COMPLETED, WorkflowState.CANCELLED}),
        WorkflowState.COMPLETED: frozenset({WorkflowState.ARCHIVED}),
        WorkflowState.CANCELLED: frozenset({WorkflowState.ARCHIVED}),
    }
)

STATE_EVENTS: Mapping[WorkflowState, tuple[WorkflowEventType, ...]] = MappingProxyType(
    {
        WorkflowState.PATIENT_VERIFICATION: (WorkflowEventType.PATIENT_VALIDATION, WorkflowEventType.AUDIT_LOGGING),
        WorkflowState.INSURANCE_VALIDATION: (WorkflowEventType.INSURANCE_VALIDATION, WorkflowEventType.AUDIT_LOGGING),
        WorkflowState.PAYMENT_PROCESSING: (WorkflowEventType.PAYMENT_PROCESSING, WorkflowEventType.AUDIT_LOGGING),
        WorkflowState.COMPLETED: (WorkflowEventType.NOTIFICATION_SENDING, WorkflowEventType.AUDIT_LOGGING),
    }
)


def _coerce_state(state: WorkflowState | str) -> WorkflowState | None:
    try:
        return WorkflowState(state)
    except ValueError:
        return None


class TransitionTable:
    """Legality checks over the reception state graph.

    ``Archived`` is the only sink: it has no outgoing edges. ``Completed`` and
    ``Cancelled`` can only move on to ``Archived``.
    """

    def __init__(
        self,
        transitions: Mapping[WorkflowState, frozenset[WorkflowState]] = ALLOWED_TRANSITIONS,
        state_events: Mapping[WorkflowState, tuple[WorkflowEventType, ...]] = STATE_EVENTS,
    ) -> None:
        self._transitions = MappingProxyType({k: frozenset(v) for k, v in transitions.items()})
        self._state_events = MappingProxyType({k: tuple(v) for k, v in state_events.items()})

    def can_transition(self, from_state: WorkflowState | str, to_state: WorkflowState | str) -> bool:
        """Whether ``from_state -> to_state`` is a legal move; False for unknown states."""
        source = _coerce_state(from_state)
        if source is None or source not in self._transitions:
            logger.debug("No outgoing transitions for state {state!r}", state=from_state)
            return False

        target = _coerce_state(to_state)
        allowed = target is not None and target in self._transitions[source]
        logger.debug(
            "Transition check {from_state} -> {to_state}: {allowed}",
            from_state=from_state,
            to_state=to_state,
            allowed=allowed,
        )
        return allowed

    def next_states(self, from_state: WorkflowState | str) -> frozenset[WorkflowState]:
        """Legal successors of ``from_state``; empty for unknown or terminal states."""
        source = _coerce_state(from_state)
        if source is None:
            return frozenset()
        return self._transitions.get(source, frozenset())

    def require_transition(self, from_state: WorkflowState | str, to_state: WorkflowState | str) -> None:
        if not self.can_transition(from_state, to_state):
            raise IllegalTransitionError(str(from_state), str(to_state))

    def events_for_state(self, state: WorkflowState | str) -> tuple[WorkflowEventType, ...]:
        """Domain events conventionally fired when ``state`` is entered."""
        target = _coerce_state(state)
        if target is None:
            return ()
        return self._state_events.get(target, ())

    def is_terminal(self, state: WorkflowState | str) -> bool:
        target = _coerce_state(state)
        return target is not None and not self._transitions.get(target)

    @property
    def states(self) -> tuple[WorkflowState, ...]:
        return tuple(WorkflowState)
