"""Read-side models produced by the event log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from reception_workflow.events.types import WorkflowEvent, WorkflowEventType
from reception_workflow.utils import new_snapshot_id, utcnow


class EventStatistics(BaseModel):
    """Summary of an aggregate's full event sequence.

    An unknown aggregate yields zero counts and empty bounds.
    """

    aggregate_id: int
    total_events: int = 0
    event_type_counts: dict[WorkflowEventType, int] = Field(default_factory=dict)
    first_event_time: datetime | None = None
    last_event_time: datetime | None = None
    unique_users: int = 0


class EventSnapshot(BaseModel):
    """Immutable capture of an aggregate's event sequence up to a point in time."""

    model_config = ConfigDict(frozen=True)

    snapshot_id: str = Field(default_factory=new_snapshot_id)
    aggregate_id: int
    snapshot_time: datetime = Field(default_factory=utcnow)
    events: tuple[WorkflowEvent, ...] = ()
    event_count: int = 0
