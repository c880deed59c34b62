"""Append-only, process-local event log.

The ``EventLog`` keeps three indices over the same immutable events: the
global list in insertion order, the per-aggregate sequence kept sorted by
timestamp, and the by-identifier map used for duplicate rejection. All three
are guarded by a single log-wide re-entrant lock, so concurrent callers
(threads or tasks) observe the uniqueness and ordering invariants.

The log owns its data: ``store`` keeps a deep copy of the event, and every
read or snapshot hands out copies, so neither callers nor handlers can
rewrite stored history through a shared payload.

Failure policy:
- Writes (``store``, ``restore_from_snapshot``, ``create_snapshot``) return an
  ``OperationResult``; they never raise for validation problems.
- Reads degrade to an empty/zero result on unexpected internal errors.
"""

import threading
from collections import Counter
from datetime import datetime

from loguru import logger

from reception_workflow.event_store.models import EventSnapshot, EventStatistics
from reception_workflow.events.types import EventFilterCriteria, WorkflowEvent, WorkflowEventType
from reception_workflow.exceptions import DuplicateEventError, EventValidationError, SnapshotError
from reception_workflow.results import OperationResult
from reception_workflow.utils import as_utc_or_none, utcnow


def _detached(event: WorkflowEvent) -> WorkflowEvent:
    return event.model_copy(deep=True)


def _by_timestamp(event: WorkflowEvent) -> datetime:
    return event.timestamp


class EventLog:
    """In-memory store of workflow events grouped by aggregate."""

    def __init__(self) -> None:
        self._events: list[WorkflowEvent] = []
        self._events_by_aggregate: dict[int, list[WorkflowEvent]] = {}
        self._events_by_id: dict[str, WorkflowEvent] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._events_by_id

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store(self, event: WorkflowEvent) -> OperationResult[WorkflowEvent]:
        """Append an event to the log.

        Rejects events with an empty identifier, a non-positive aggregate
        identifier, or an identifier that is already stored. A rejected event
        leaves the log untouched.
        """
        event_id = getattr(event, "event_id", None)
        logger.debug(
            "Storing event {event_id} for aggregate {aggregate_id} ({event_type})",
            event_id=event_id,
            aggregate_id=getattr(event, "aggregate_id", None),
            event_type=getattr(event, "event_type", None),
        )
        try:
            with self._lock:
                self._validate_new(event)
                stored = event.model_copy(deep=True)
                self._append(stored)

        except DuplicateEventError as e:
            logger.warning("Duplicate event rejected: {event_id}", event_id=e.event_id)
            return OperationResult.failed(str(e), e.error_code)
        except EventValidationError as e:
            logger.warning("Invalid event rejected: {reason}", reason=str(e))
            return OperationResult.failed(str(e), e.error_code)
        except Exception:
            logger.exception("Failed to store event {event_id}", event_id=event_id)
            return OperationResult.failed("Failed to store event", "internal_error")

        logger.info(
            "Stored event {event_id} for aggregate {aggregate_id}",
            event_id=event.event_id,
            aggregate_id=event.aggregate_id,
        )
        return OperationResult.ok(_detached(stored))

    def create_snapshot(self, aggregate_id: int, at_time: datetime | str | None = None) -> OperationResult[EventSnapshot]:
        """Capture the aggregate's events at or before ``at_time`` (all when omitted)."""
        logger.info("Creating snapshot for aggregate {aggregate_id} at {at_time}", aggregate_id=aggregate_id, at_time=at_time)
        try:
            cutoff = as_utc_or_none(at_time)
            with self._lock:
                events = list(self._events_by_aggregate.get(aggregate_id, ()))
            if not events:
                raise SnapshotError(f"No events found for aggregate {aggregate_id}")

            if cutoff is not None:
                events = [e for e in events if e.timestamp <= cutoff]

            snapshot = EventSnapshot(
                aggregate_id=aggregate_id,
                snapshot_time=cutoff or utcnow(),
                events=tuple(_detached(e) for e in events),
                event_count=len(events),
            )

        except SnapshotError as e:
            logger.warning("Snapshot rejected for aggregate {aggregate_id}: {reason}", aggregate_id=aggregate_id, reason=str(e))
            return OperationResult.failed(str(e), e.error_code)
        except Exception:
            logger.exception("Failed to create snapshot for aggregate {aggregate_id}", aggregate_id=aggregate_id)
            return OperationResult.failed("Failed to create snapshot", "internal_error")

        logger.info(
            "Snapshot {snapshot_id} created for aggregate {aggregate_id} with {count} events",
            snapshot_id=snapshot.snapshot_id,
            aggregate_id=aggregate_id,
            count=snapshot.event_count,
        )
        return OperationResult.ok(snapshot)

    def restore_from_snapshot(self, snapshot: EventSnapshot) -> OperationResult[int]:
        """Replace the aggregate's live events with the snapshot's events.

        The aggregate is cleared wholesale (its sequence, and its entries in the
        by-identifier index and the global list), then every captured event is
        re-stored through ``store``. The result data is the number of events
        restored.
        """
        logger.info(
            "Restoring aggregate {aggregate_id} from snapshot {snapshot_id}",
            aggregate_id=snapshot.aggregate_id,
            snapshot_id=snapshot.snapshot_id,
        )
        try:
            foreign = [e.event_id for e in snapshot.events if e.aggregate_id != snapshot.aggregate_id]
            if foreign:
                raise SnapshotError(f"Snapshot {snapshot.snapshot_id} contains events of another aggregate: {foreign}")

            with self._lock:
                self._purge_aggregate(snapshot.aggregate_id)
                rejected = [e.event_id for e in snapshot.events if not self.store(e).success]

        except SnapshotError as e:
            logger.warning("Snapshot {snapshot_id} not restored: {reason}", snapshot_id=snapshot.snapshot_id, reason=str(e))
            return OperationResult.failed(str(e), e.error_code)
        except Exception:
            logger.exception("Failed to restore snapshot {snapshot_id}", snapshot_id=snapshot.snapshot_id)
            return OperationResult.failed("Failed to restore snapshot", "internal_error")

        restored = len(snapshot.events) - len(rejected)
        if rejected:
            logger.warning(
                "Snapshot {snapshot_id}: {rejected} of {total} events were rejected",
                snapshot_id=snapshot.snapshot_id,
                rejected=len(rejected),
                total=len(snapshot.events),
            )
            return OperationResult.failed(
                f"Restored {restored} of {len(snapshot.events)} events; rejected: {', '.join(rejected)}",
                SnapshotError.error_code,
            )

        logger.info(
            "Aggregate {aggregate_id} restored with {count} events",
            aggregate_id=snapshot.aggregate_id,
            count=restored,
        )
        return OperationResult.ok(restored)

    def clear(self) -> None:
        """Drop every stored event."""
        with self._lock:
            self._events.clear()
            self._events_by_aggregate.clear()
            self._events_by_id.clear()
        logger.debug("Event log cleared")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_events(self, aggregate_id: int, from_date: datetime | str | None = None) -> list[WorkflowEvent]:
        """Events of an aggregate in ascending timestamp order, optionally from ``from_date`` on."""
        try:
            start = as_utc_or_none(from_date)
            with self._lock:
                events = list(self._events_by_aggregate.get(aggregate_id, ()))
            if start is not None:
                events = [e for e in events if e.timestamp >= start]
            return [_detached(e) for e in events]
        except Exception:
            logger.exception("Failed to read events for aggregate {aggregate_id}", aggregate_id=aggregate_id)
            return []

    def get_events_by_criteria(self, criteria: EventFilterCriteria) -> list[WorkflowEvent]:
        """Events matching every provided predicate, in ascending timestamp order."""
        try:
            with self._lock:
                if criteria.aggregate_id is not None:
                    candidates = list(self._events_by_aggregate.get(criteria.aggregate_id, ()))
                else:
                    candidates = list(self._events)
            matched = sorted((e for e in candidates if criteria.matches(e)), key=_by_timestamp)
            logger.debug("Criteria query [{criteria}] matched {count} events", criteria=str(criteria), count=len(matched))
            return [_detached(e) for e in matched]
        except Exception:
            logger.exception("Failed to query events by criteria")
            return []

    def get_last_event(self, aggregate_id: int, event_type: WorkflowEventType) -> WorkflowEvent | None:
        """Most recent event of the given type for the aggregate, if any."""
        try:
            with self._lock:
                events = self._events_by_aggregate.get(aggregate_id, ())
                for event in reversed(events):
                    if event.event_type == event_type:
                        return _detached(event)
            return None
        except Exception:
            logger.exception("Failed to read last event for aggregate {aggregate_id}", aggregate_id=aggregate_id)
            return None

    def get_event_count(self, aggregate_id: int, event_type: WorkflowEventType) -> int:
        try:
            with self._lock:
                return sum(1 for e in self._events_by_aggregate.get(aggregate_id, ()) if e.event_type == event_type)
        except Exception:
            logger.exception("Failed to count events for aggregate {aggregate_id}", aggregate_id=aggregate_id)
            return 0

    def get_event_statistics(self, aggregate_id: int) -> EventStatistics:
        try:
            with self._lock:
                events = list(self._events_by_aggregate.get(aggregate_id, ()))
            if not events:
                return EventStatistics(aggregate_id=aggregate_id)

            return EventStatistics(
                aggregate_id=aggregate_id,
                total_events=len(events),
                event_type_counts=dict(Counter(e.event_type for e in events)),
                first_event_time=events[0].timestamp,
                last_event_time=events[-1].timestamp,
                unique_users=len({e.user_id for e in events if e.user_id is not None}),
            )
        except Exception:
            logger.exception("Failed to compute statistics for aggregate {aggregate_id}", aggregate_id=aggregate_id)
            return EventStatistics(aggregate_id=aggregate_id)

    def aggregate_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._events_by_aggregate)

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _validate_new(self, event: WorkflowEvent) -> None:
        if not isinstance(event, WorkflowEvent):
            raise EventValidationError(f"Expected a WorkflowEvent, got {type(event).__name__}")
        if not event.event_id:
            raise EventValidationError("Event identifier must not be empty")
        if event.aggregate_id <= 0:
            raise EventValidationError(f"Aggregate identifier must be positive, got {event.aggregate_id}")
        if event.event_id in self._events_by_id:
            raise DuplicateEventError(event.event_id)

    def _append(self, event: WorkflowEvent) -> None:
        self._events.append(event)
        self._events_by_id[event.event_id] = event
        sequence = self._events_by_aggregate.setdefault(event.aggregate_id, [])
        sequence.append(event)
        sequence.sort(key=_by_timestamp)

    def _purge_aggregate(self, aggregate_id: int) -> None:
        removed = self._events_by_aggregate.pop(aggregate_id, [])
        for event in removed:
            self._events_by_id.pop(event.event_id, None)
        if removed:
            self._events = [e for e in self._events if e.aggregate_id != aggregate_id]
        logger.debug("Cleared {count} live events of aggregate {aggregate_id}", count=len(removed), aggregate_id=aggregate_id)
