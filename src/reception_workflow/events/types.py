"""Event and dispatch result models for the reception workflow.

This module contains the Pydantic models that flow through the engine: the
immutable ``WorkflowEvent`` itself, the criteria used to query stored events,
and the per-handler / per-event results produced by dispatch and replay.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reception_workflow.utils import as_utc, as_utc_or_none, new_event_id, utcnow


class WorkflowEventType(StrEnum):
    """Closed set of domain events a reception can produce."""

    PATIENT_VALIDATION = "PatientValidation"
    INSURANCE_VALIDATION = "InsuranceValidation"
    PAYMENT_PROCESSING = "PaymentProcessing"
    NOTIFICATION_SENDING = "NotificationSending"
    AUDIT_LOGGING = "AuditLogging"


class WorkflowEvent(BaseModel):
    """An immutable fact about something that happened to a reception.

    ``event_id`` must be unique across the whole event log. ``payload`` is
    opaque to the engine and interpreted by handlers only.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=new_event_id)
    aggregate_id: int
    event_type: WorkflowEventType
    payload: Any = None
    user_id: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, v: datetime | str) -> datetime:
        return as_utc(v)


class EventFilterCriteria(BaseModel):
    """Independently optional predicates used to query stored events.

    All provided predicates are ANDed; an absent predicate (or an empty
    ``event_types`` list) imposes no constraint. Date bounds are inclusive.
    """

    aggregate_id: int | None = None
    event_types: list[WorkflowEventType] = Field(default_factory=list)
    from_date: datetime | None = None
    to_date: datetime | None = None
    user_id: str | None = None

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def normalize_dates(cls, v: datetime | str | None) -> datetime | None:
        return as_utc_or_none(v)

    def matches(self, event: WorkflowEvent) -> bool:
        if self.aggregate_id is not None and event.aggregate_id != self.aggregate_id:
            return False
        if self.event_types and event.event_type not in self.event_types:
            return False
        if self.from_date is not None and event.timestamp < self.from_date:
            return False
        if self.to_date is not None and event.timestamp > self.to_date:
            return False
        if self.user_id and event.user_id != self.user_id:
            return False
        return True

    def __str__(self) -> str:
        parts = [f"{name}={value}" for name, value in self.model_dump(exclude_defaults=True).items()]
        return ", ".join(parts) or "<all>"


class HandlerResult(BaseModel):
    """Outcome of a single handler invocation."""

    handler_name: str
    success: bool
    error_message: str | None = None
    result_data: Any = None
    duration_ms: float | None = None

    @classmethod
    def succeeded(cls, handler_name: str, result_data: Any = None) -> "HandlerResult":
        return cls(handler_name=handler_name, success=True, result_data=result_data)

    @classmethod
    def failed(cls, handler_name: str, error_message: str) -> "HandlerResult":
        return cls(handler_name=handler_name, success=False, error_message=error_message)


class EventProcessingResult(BaseModel):
    """Aggregated outcome of processing one event.

    ``success`` is False as soon as any handler failed (or the event could not
    be stored); ``handler_results`` still reports every individual outcome.
    """

    aggregate_id: int
    event_type: WorkflowEventType | str
    event_id: str | None = None
    processed_at: datetime = Field(default_factory=utcnow)
    success: bool = True
    stored: bool = False
    handler_results: list[HandlerResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def failed_handlers(self) -> list[HandlerResult]:
        return [r for r in self.handler_results if not r.success]

    @property
    def partially_succeeded(self) -> bool:
        """True when some, but not all, handlers succeeded."""
        failed = len(self.failed_handlers)
        return 0 < failed < len(self.handler_results)


class EventReplayItem(BaseModel):
    """Outcome of replaying one stored event."""

    event_id: str
    event_type: WorkflowEventType
    timestamp: datetime
    success: bool
    error_message: str | None = None
    replayed_event_id: str | None = None


class EventReplayResult(BaseModel):
    """Outcome of replaying an aggregate's stored history."""

    aggregate_id: int
    success: bool = True
    replayed_events: list[EventReplayItem] = Field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.replayed_events if not item.success)
