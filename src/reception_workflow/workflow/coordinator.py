"""Workflow coordinator: transition execution, event processing and replay.

The coordinator is the public face of the engine. It validates state moves
against the ``TransitionTable``, runs best-effort hooks around them, hands
transition records to the audit sink, and processes domain events by storing
them in the ``EventLog`` and fanning them out through the ``EventDispatcher``.

Every public operation recovers its own failures and returns a result value;
nothing here raises through to the caller.

## Usage

```python
coordinator = WorkflowCoordinator(event_log=EventLog(), handlers=build_default_handler_registry())

result = await coordinator.execute_transition(
    42, WorkflowState.INITIALIZED, WorkflowState.PATIENT_VERIFICATION, reason="walk-in", user_id="u1"
)
processed = await coordinator.process_event(42, WorkflowEventType.PATIENT_VALIDATION, {"patient_id": 7}, "u1")
```
"""

import asyncio
import concurrent.futures
from datetime import datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from reception_workflow.event_bus import EventDispatcher, HandlerRegistry
from reception_workflow.event_store import EventLog, EventSnapshot, EventStatistics
from reception_workflow.events.types import (
    EventFilterCriteria,
    EventProcessingResult,
    EventReplayItem,
    EventReplayResult,
    WorkflowEvent,
    WorkflowEventType,
)
from reception_workflow.exceptions import IllegalTransitionError
from reception_workflow.results import OperationResult
from reception_workflow.settings import WorkflowSettings, get_settings
from reception_workflow.workflow.audit import TransitionAuditSink, TransitionHistory
from reception_workflow.workflow.models import StateTransition, StateTransitionResult
from reception_workflow.workflow.rules import (
    GuardResult,
    TransitionGuards,
    TransitionHooks,
    TransitionRequest,
    TransitionValidationResult,
)
from reception_workflow.workflow.state_machine import TransitionTable, WorkflowState


class WorkflowCoordinator:
    """Orchestrates transitions and event processing for receptions.

    Args:
        event_log: Shared event log.
        handlers: Handler configuration; frozen on construction.
        transition_table: State graph; defaults to the reception graph.
        audit_sink: Receives every committed ``StateTransition``; defaults to
            an in-memory ``TransitionHistory``.
        hooks: Event types fired before/after specific moves (empty by default).
        guards: Callables that may veto specific moves (none by default).
        settings: Engine settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        event_log: EventLog,
        handlers: HandlerRegistry,
        transition_table: TransitionTable | None = None,
        audit_sink: TransitionAuditSink | None = None,
        hooks: TransitionHooks | None = None,
        guards: TransitionGuards | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._event_log = event_log
        self._dispatcher = EventDispatcher(handlers, isolate_events=self._settings.isolate_events)
        self._table = transition_table or TransitionTable()
        self._audit_sink = audit_sink if audit_sink is not None else TransitionHistory()
        self._hooks = hooks or TransitionHooks()
        self._guards = guards or TransitionGuards()
        self._sync_executor: concurrent.futures.ThreadPoolExecutor | None = None

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def transition_table(self) -> TransitionTable:
        return self._table

    @property
    def audit_sink(self) -> TransitionAuditSink:
        return self._audit_sink

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def can_transition(self, from_state: WorkflowState | str, to_state: WorkflowState | str) -> bool:
        return self._table.can_transition(from_state, to_state)

    def get_valid_next_states(self, from_state: WorkflowState | str) -> frozenset[WorkflowState]:
        return self._table.next_states(from_state)

    def validate_transition(
        self,
        aggregate_id: int,
        from_state: WorkflowState | str,
        to_state: WorkflowState | str,
        user_id: str | None = None,
        data: Any = None,
        reason: str = "",
    ) -> TransitionValidationResult:
        """Check a move against the transition table, then against its guards.

        Guards are only consulted for legal moves. A guard may return a
        ``GuardResult`` or a plain bool; a guard that raises counts as a
        rejection.
        """
        result = TransitionValidationResult(aggregate_id=aggregate_id, from_state=str(from_state), to_state=str(to_state))
        try:
            self._table.require_transition(from_state, to_state)
        except IllegalTransitionError as e:
            result.is_valid = False
            result.errors.append(str(e))
            return result

        request = TransitionRequest(
            aggregate_id=aggregate_id,
            from_state=WorkflowState(from_state),
            to_state=WorkflowState(to_state),
            reason=reason,
            user_id=user_id,
            data=data,
        )
        for guard in self._guards.for_transition(request.from_state, request.to_state):
            outcome = self._evaluate_guard(guard, request)
            result.warnings.extend(outcome.warnings)
            if not outcome.success:
                result.is_valid = False
                result.errors.append(outcome.error_message or f"Guard {_guard_name(guard)} rejected the transition")

        return result

    async def execute_transition(
        self,
        aggregate_id: int,
        from_state: WorkflowState | str,
        to_state: WorkflowState | str,
        reason: str = "",
        user_id: str | None = None,
        data: Any = None,
    ) -> StateTransitionResult:
        """Move an aggregate from ``from_state`` to ``to_state``.

        Illegal or guard-rejected moves fail immediately, without side
        effects. Otherwise pre-transition hooks run, the transition record is
        handed to the audit sink, and post-transition hooks run. Hook failures
        are logged and reported but never fail the move itself.
        """
        logger.info(
            "Executing transition {from_state} -> {to_state} for aggregate {aggregate_id} (reason: {reason})",
            from_state=from_state,
            to_state=to_state,
            aggregate_id=aggregate_id,
            reason=reason,
        )
        try:
            validation = self.validate_transition(aggregate_id, from_state, to_state, user_id=user_id, data=data, reason=reason)
            if not validation.is_valid:
                logger.warning(
                    "Transition {from_state} -> {to_state} rejected for aggregate {aggregate_id}: {errors}",
                    from_state=from_state,
                    to_state=to_state,
                    aggregate_id=aggregate_id,
                    errors=validation.errors,
                )
                return StateTransitionResult(
                    aggregate_id=aggregate_id,
                    previous_state=str(from_state),
                    current_state=str(from_state),
                    success=False,
                    message=validation.errors[0],
                    errors=validation.errors,
                )

            source, target = WorkflowState(from_state), WorkflowState(to_state)
            hook_payload = {"from_state": str(source), "to_state": str(target), "reason": reason}

            pre_results = await self._run_hooks(
                aggregate_id, self._hooks.pre_transition_events(source, target), {**hook_payload, "phase": "pre"}, user_id
            )

            transition = StateTransition(
                aggregate_id=aggregate_id,
                from_state=str(source),
                to_state=str(target),
                reason=reason,
                user_id=user_id,
            )
            self._record_transition(transition)

            post_events = self._hooks.post_transition_events(source, target)
            if self._settings.auto_state_events:
                post_events = (*post_events, *self._table.events_for_state(target))
            post_results = await self._run_hooks(aggregate_id, post_events, {**hook_payload, "phase": "post"}, user_id)

        except Exception:
            logger.exception(
                "Failed to execute transition {from_state} -> {to_state} for aggregate {aggregate_id}",
                from_state=from_state,
                to_state=to_state,
                aggregate_id=aggregate_id,
            )
            return StateTransitionResult(
                aggregate_id=aggregate_id,
                previous_state=str(from_state),
                current_state=str(from_state),
                success=False,
                message="Failed to execute transition",
                errors=["Failed to execute transition"],
            )

        logger.info(
            "Aggregate {aggregate_id} moved to {to_state}",
            aggregate_id=aggregate_id,
            to_state=target,
        )
        return StateTransitionResult(
            aggregate_id=aggregate_id,
            previous_state=str(source),
            current_state=str(target),
            transition_time=transition.transition_time,
            success=True,
            message=f"Transition from {source} to {target} completed",
            pre_hook_results=pre_results,
            post_hook_results=post_results,
        )

    def get_transition_history(self, aggregate_id: int) -> list[StateTransition]:
        """Transitions recorded by the default in-memory audit sink.

        Returns an empty list when a custom sink without a readable history is
        configured.
        """
        if isinstance(self._audit_sink, TransitionHistory):
            return self._audit_sink.get_history(aggregate_id)
        return []

    async def _run_hooks(
        self,
        aggregate_id: int,
        event_types: tuple[WorkflowEventType, ...],
        payload: dict[str, Any],
        user_id: str | None,
    ) -> list[EventProcessingResult]:
        results = []
        for event_type in event_types:
            processed = await self.process_event(aggregate_id, event_type, payload, user_id)
            if not processed.success:
                logger.warning(
                    "{phase}-transition hook {event_type} failed for aggregate {aggregate_id}: {errors}",
                    phase=payload.get("phase"),
                    event_type=event_type,
                    aggregate_id=aggregate_id,
                    errors=processed.errors,
                )
            results.append(processed)
        return results

    def _record_transition(self, transition: StateTransition) -> None:
        try:
            self._audit_sink.record(transition)
        except Exception:
            logger.exception(
                "Audit sink failed to record transition for aggregate {aggregate_id}",
                aggregate_id=transition.aggregate_id,
            )

    def _evaluate_guard(self, guard, request: TransitionRequest) -> GuardResult:
        try:
            outcome = guard(request)
        except Exception:
            logger.exception("Transition guard {guard} raised", guard=_guard_name(guard))
            return GuardResult.rejected(f"Guard {_guard_name(guard)} raised an error")

        if isinstance(outcome, GuardResult):
            return outcome
        return GuardResult(success=bool(outcome))

    # ------------------------------------------------------------------
    # Event processing
    # ------------------------------------------------------------------

    async def process_event(
        self,
        aggregate_id: int,
        event_type: WorkflowEventType | str,
        payload: Any = None,
        user_id: str | None = None,
    ) -> EventProcessingResult:
        """Store a new event and run its sync handlers, then its async handlers.

        The result is unsuccessful if the event could not be stored (no
        handler runs in that case) or if any handler failed.
        """
        logger.info(
            "Processing {event_type} for aggregate {aggregate_id} by {user_id}",
            event_type=event_type,
            aggregate_id=aggregate_id,
            user_id=user_id,
        )
        try:
            event = WorkflowEvent(aggregate_id=aggregate_id, event_type=event_type, payload=payload, user_id=user_id)
        except ValidationError as e:
            logger.warning("Invalid event data for aggregate {aggregate_id}: {error}", aggregate_id=aggregate_id, error=str(e))
            return EventProcessingResult(
                aggregate_id=aggregate_id if isinstance(aggregate_id, int) else 0,
                event_type=str(event_type),
                success=False,
                errors=["Invalid event data"],
            )

        return await self._process(event, persist=True)

    def process_event_sync(
        self,
        aggregate_id: int,
        event_type: WorkflowEventType | str,
        payload: Any = None,
        user_id: str | None = None,
    ) -> EventProcessingResult:
        """Blocking variant of ``process_event`` for synchronous callers.

        Inside a running event loop the coroutine is executed on a private
        single-worker thread, otherwise via ``asyncio.run``.
        """
        coroutine = self.process_event(aggregate_id, event_type, payload, user_id)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coroutine)

        if self._sync_executor is None:
            self._sync_executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
            logger.debug("Created sync executor for WorkflowCoordinator")
        future = self._sync_executor.submit(asyncio.run, coroutine)
        return future.result()

    def shutdown(self) -> None:
        """Release the thread used by ``process_event_sync``."""
        if self._sync_executor is not None:
            logger.debug("Shutting down WorkflowCoordinator sync executor")
            self._sync_executor.shutdown(wait=True)
            self._sync_executor = None

    async def _process(self, event: WorkflowEvent, persist: bool) -> EventProcessingResult:
        result = EventProcessingResult(aggregate_id=event.aggregate_id, event_type=event.event_type, event_id=event.event_id)
        try:
            if persist:
                stored = self._event_log.store(event)
                if not stored.success:
                    result.success = False
                    result.errors.append(stored.message)
                    return result
                result.stored = True

            result.handler_results = await self._dispatcher.dispatch(event)

        except Exception:
            logger.exception("Failed to process event {event_id}", event_id=event.event_id)
            result.success = False
            result.errors.append("Failed to process event")
            return result

        failed = result.failed_handlers
        if failed:
            result.success = False
            result.errors.extend(f"{r.handler_name}: {r.error_message}" for r in failed)

        logger.info(
            "Processed {event_type} for aggregate {aggregate_id}: success={success}, handlers={handlers}",
            event_type=event.event_type,
            aggregate_id=event.aggregate_id,
            success=result.success,
            handlers=len(result.handler_results),
        )
        return result

    # ------------------------------------------------------------------
    # Replay and reads
    # ------------------------------------------------------------------

    async def replay_events(self, aggregate_id: int, from_date: datetime | str | None = None) -> EventReplayResult:
        """Re-drive an aggregate's stored events through the handlers, in stored order.

        With ``replay_mode="handlers_only"`` the stored events are dispatched as
        they are and nothing is appended. With ``replay_mode="reappend"`` each
        event is stored again under a fresh identifier (``metadata`` records
        the original in ``replayed_from``) and then dispatched. A failure on
        one event never stops the replay of the following ones.
        """
        mode = self._settings.replay_mode
        events = self._event_log.get_events(aggregate_id, from_date)
        logger.info(
            "Replaying {count} events for aggregate {aggregate_id} (mode: {mode})",
            count=len(events),
            aggregate_id=aggregate_id,
            mode=mode,
        )

        result = EventReplayResult(aggregate_id=aggregate_id)
        for event in events:
            try:
                if mode == "reappend":
                    replay = WorkflowEvent(
                        aggregate_id=event.aggregate_id,
                        event_type=event.event_type,
                        payload=event.payload,
                        user_id=event.user_id,
                        metadata={**event.metadata, "replayed_from": event.event_id},
                    )
                    processed = await self._process(replay, persist=True)
                else:
                    processed = await self._process(event, persist=False)

                item = EventReplayItem(
                    event_id=event.event_id,
                    event_type=event.event_type,
                    timestamp=event.timestamp,
                    success=processed.success,
                    error_message="; ".join(processed.errors) or None,
                    replayed_event_id=processed.event_id if processed.stored else None,
                )
            except Exception:
                logger.exception("Failed to replay event {event_id}", event_id=event.event_id)
                item = EventReplayItem(
                    event_id=event.event_id,
                    event_type=event.event_type,
                    timestamp=event.timestamp,
                    success=False,
                    error_message="Failed to replay event",
                )
            result.replayed_events.append(item)

        result.success = result.failed_count == 0
        logger.info(
            "Replay finished for aggregate {aggregate_id}: {count} events, {failed} failed",
            aggregate_id=aggregate_id,
            count=len(result.replayed_events),
            failed=result.failed_count,
        )
        return result

    def filter_events(self, criteria: EventFilterCriteria) -> list[WorkflowEvent]:
        return self._event_log.get_events_by_criteria(criteria)

    def store_event(self, event: WorkflowEvent) -> OperationResult[WorkflowEvent]:
        return self._event_log.store(event)

    def get_events(self, aggregate_id: int, from_date: datetime | str | None = None) -> list[WorkflowEvent]:
        return self._event_log.get_events(aggregate_id, from_date)

    def get_last_event(self, aggregate_id: int, event_type: WorkflowEventType) -> WorkflowEvent | None:
        return self._event_log.get_last_event(aggregate_id, event_type)

    def get_event_count(self, aggregate_id: int, event_type: WorkflowEventType) -> int:
        return self._event_log.get_event_count(aggregate_id, event_type)

    def get_event_statistics(self, aggregate_id: int) -> EventStatistics:
        return self._event_log.get_event_statistics(aggregate_id)

    def create_snapshot(self, aggregate_id: int, at_time: datetime | str | None = None) -> OperationResult[EventSnapshot]:
        return self._event_log.create_snapshot(aggregate_id, at_time)

    def restore_from_snapshot(self, snapshot: EventSnapshot) -> OperationResult[int]:
        return self._event_log.restore_from_snapshot(snapshot)


def _guard_name(guard) -> str:
    return getattr(guard, "__qualname__", None) or type(guard).__name__
