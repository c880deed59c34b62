"""Shared fixtures for the workflow engine tests."""

from datetime import UTC, datetime, timedelta

import pytest
from loguru import logger

from reception_workflow.event_store import EventLog
from reception_workflow.events import WorkflowEvent, WorkflowEventType
from reception_workflow.settings import WorkflowSettings

BASE_TIME = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


def at(seconds: int) -> datetime:
    """Timestamp ``seconds`` after the fixed test epoch."""
    return BASE_TIME + timedelta(seconds=seconds)


@pytest.fixture
def settings() -> WorkflowSettings:
    return WorkflowSettings(_env_file=None)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def make_event():
    """Factory for events with deterministic timestamps."""

    def _make(
        event_id: str,
        aggregate_id: int = 42,
        event_type: WorkflowEventType = WorkflowEventType.PATIENT_VALIDATION,
        seconds: int = 0,
        user_id: str | None = "u1",
        payload=None,
    ) -> WorkflowEvent:
        return WorkflowEvent(
            event_id=event_id,
            aggregate_id=aggregate_id,
            event_type=event_type,
            timestamp=at(seconds),
            user_id=user_id,
            payload=payload,
        )

    return _make


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="TRACE")
    yield records
    logger.remove(handler_id)
