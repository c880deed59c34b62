"""Per-transition side-effect hooks and guards.

Hooks name the event types dispatched before and after a particular move;
guards are callables that may veto a legal move (missing data, business
rules, permissions). Both are configured once and injected into the
coordinator. Neither has entries by default.
"""

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field

from reception_workflow.events.types import WorkflowEventType
from reception_workflow.workflow.state_machine import WorkflowState

TransitionKey = tuple[WorkflowState, WorkflowState]


class TransitionRequest(BaseModel):
    """A requested move, as seen by guards."""

    aggregate_id: int
    from_state: WorkflowState
    to_state: WorkflowState
    reason: str = ""
    user_id: str | None = None
    data: Any = None


class GuardResult(BaseModel):
    success: bool = True
    error_message: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def passed(cls, *warnings: str) -> "GuardResult":
        return cls(success=True, warnings=list(warnings))

    @classmethod
    def rejected(cls, error_message: str) -> "GuardResult":
        return cls(success=False, error_message=error_message)


TransitionGuard = Callable[[TransitionRequest], GuardResult | bool]


class TransitionValidationResult(BaseModel):
    """Outcome of checking a move against the table and its guards."""

    aggregate_id: int
    from_state: str
    to_state: str
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TransitionHooks:
    """Event types dispatched before and after specific moves.

    Example:
        ```python
        hooks = TransitionHooks(
            post={(WorkflowState.PAYMENT_PROCESSING, WorkflowState.COMPLETED): [WorkflowEventType.NOTIFICATION_SENDING]},
        )
        ```
    """

    def __init__(
        self,
        pre: Mapping[TransitionKey, Iterable[WorkflowEventType]] | None = None,
        post: Mapping[TransitionKey, Iterable[WorkflowEventType]] | None = None,
    ) -> None:
        self._pre = MappingProxyType(_normalize(pre or {}))
        self._post = MappingProxyType(_normalize(post or {}))

    def pre_transition_events(self, from_state: WorkflowState, to_state: WorkflowState) -> tuple[WorkflowEventType, ...]:
        return self._pre.get((from_state, to_state), ())

    def post_transition_events(self, from_state: WorkflowState, to_state: WorkflowState) -> tuple[WorkflowEventType, ...]:
        return self._post.get((from_state, to_state), ())


class TransitionGuards:
    """Guards per move; a move without guards is only checked for legality."""

    def __init__(self, guards: Mapping[TransitionKey, Iterable[TransitionGuard]] | None = None) -> None:
        self._guards = MappingProxyType(
            {(WorkflowState(a), WorkflowState(b)): tuple(fns) for (a, b), fns in (guards or {}).items()}
        )

    def for_transition(self, from_state: WorkflowState, to_state: WorkflowState) -> tuple[TransitionGuard, ...]:
        return self._guards.get((from_state, to_state), ())


def _normalize(mapping: Mapping[TransitionKey, Iterable[WorkflowEventType]]) -> dict[TransitionKey, tuple[WorkflowEventType, ...]]:
    return {
        (WorkflowState(a), WorkflowState(b)): tuple(WorkflowEventType(t) for t in types)
        for (a, b), types in mapping.items()
    }
