"""Transition records and results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from reception_workflow.events.types import EventProcessingResult
from reception_workflow.utils import utcnow


class StateTransition(BaseModel):
    """Audit record of a state move, handed to the audit sink."""

    model_config = ConfigDict(frozen=True)

    aggregate_id: int
    from_state: str
    to_state: str
    transition_time: datetime = Field(default_factory=utcnow)
    reason: str = ""
    user_id: str | None = None


class StateTransitionResult(BaseModel):
    """Outcome of ``WorkflowCoordinator.execute_transition``.

    ``success`` reflects the state move only; hook outcomes are reported in
    ``pre_hook_results`` / ``post_hook_results`` and do not affect it.
    """

    aggregate_id: int
    previous_state: str
    current_state: str
    transition_time: datetime = Field(default_factory=utcnow)
    success: bool
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    pre_hook_results: list[EventProcessingResult] = Field(default_factory=list)
    post_hook_results: list[EventProcessingResult] = Field(default_factory=list)

    @property
    def hooks_succeeded(self) -> bool:
        return all(r.success for r in [*self.pre_hook_results, *self.post_hook_results])
