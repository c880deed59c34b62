"""Exceptions raised inside the workflow engine.

These are internal signals: every public operation catches them at its
boundary and reports a failed result value instead. The only one that can
reach a caller is ``HandlerRegistrationError``, raised while the handler
configuration is being built.
"""


class WorkflowError(Exception):
    """Base class for all workflow engine errors."""

    error_code = "workflow_error"


class EventValidationError(WorkflowError):
    """Raised when an event is malformed (empty id, non-positive aggregate id)."""

    error_code = "invalid_event"


class DuplicateEventError(WorkflowError):
    """Raised when an event identifier is already present in the log."""

    error_code = "duplicate_event"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Event already exists: {event_id}")


class SnapshotError(WorkflowError):
    """Raised when a snapshot cannot be created or restored."""

    error_code = "snapshot_error"


class IllegalTransitionError(WorkflowError):
    """Raised when a state move is not present in the transition table."""

    error_code = "illegal_transition"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Transition from {from_state} to {to_state} is not allowed")


class HandlerRegistrationError(WorkflowError):
    """Raised when a handler registration is invalid.

    This occurs when:
    - The event type is not a known ``WorkflowEventType``
    - The handler is not callable
    - The registry has already been frozen
    """

    error_code = "handler_registration"
