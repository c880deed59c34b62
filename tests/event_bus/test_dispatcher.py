"""Tests for the handler registry and event dispatcher."""

import asyncio

import pytest

from reception_workflow.event_bus import EventDispatcher, EventHandler, HandlerRegistry
from reception_workflow.events import HandlerResult, WorkflowEvent, WorkflowEventType
from reception_workflow.exceptions import HandlerRegistrationError

PATIENT = WorkflowEventType.PATIENT_VALIDATION
NOTIFY = WorkflowEventType.NOTIFICATION_SENDING


class RecordingHandler(EventHandler):
    """Sync handler that appends its label to a shared call log."""

    def __init__(self, label: str, calls: list[str], fail: bool = False):
        self.label = label
        self.calls = calls
        self.fail = fail

    @property
    def name(self) -> str:
        return self.label

    def handle(self, event: WorkflowEvent) -> HandlerResult:
        self.calls.append(self.label)
        if self.fail:
            raise RuntimeError(f"{self.label} exploded")
        return HandlerResult.succeeded(self.name)


class SlowAsyncHandler(EventHandler):
    """Async handler that waits before completing."""

    def __init__(self, label: str, delay: float, finished: list[str], fail: bool = False):
        self.label = label
        self.delay = delay
        self.finished = finished
        self.fail = fail

    @property
    def name(self) -> str:
        return self.label

    async def handle(self, event: WorkflowEvent) -> HandlerResult:
        await asyncio.sleep(self.delay)
        self.finished.append(self.label)
        if self.fail:
            return HandlerResult.failed(self.name, "gateway unavailable")
        return HandlerResult.succeeded(self.name)


def _event(event_type: WorkflowEventType = PATIENT) -> WorkflowEvent:
    return WorkflowEvent(aggregate_id=42, event_type=event_type, payload={"patient_id": 7}, user_id="u1")


class TestHandlerRegistry:
    """Tests for HandlerRegistry."""

    def test_register_sync_and_async(self):
        registry = HandlerRegistry()
        registry.on(PATIENT, RecordingHandler("a", []))
        registry.on_async(PATIENT, SlowAsyncHandler("b", 0, []))

        assert registry.get_handler_count(PATIENT) == 2
        assert len(registry.sync_handlers(PATIENT)) == 1
        assert len(registry.async_handlers(PATIENT)) == 1
        assert registry.get_registered_events() == [PATIENT]

    def test_register_by_string_tag(self):
        registry = HandlerRegistry().on("NotificationSending", RecordingHandler("a", []))
        assert registry.get_handler_count(NOTIFY) == 1

    def test_unknown_event_type(self):
        with pytest.raises(HandlerRegistrationError):
            HandlerRegistry().on("BedAllocation", RecordingHandler("a", []))

    def test_handler_must_be_callable(self):
        with pytest.raises(HandlerRegistrationError):
            HandlerRegistry().on(PATIENT, "not_callable")  # type: ignore[arg-type]

    def test_frozen_registry_rejects_registration(self):
        registry = HandlerRegistry()
        EventDispatcher(registry)

        assert registry.frozen
        with pytest.raises(HandlerRegistrationError):
            registry.on(PATIENT, RecordingHandler("late", []))

    def test_unregistered_type_has_no_handlers(self):
        registry = HandlerRegistry()
        assert registry.sync_handlers(NOTIFY) == ()
        assert registry.async_handlers(NOTIFY) == ()


class TestEventDispatcher:
    """Tests for EventDispatcher."""

    @pytest.mark.asyncio
    async def test_sync_handlers_run_in_registration_order(self):
        calls: list[str] = []
        registry = HandlerRegistry()
        for label in ["first", "second", "third"]:
            registry.on(PATIENT, RecordingHandler(label, calls))

        results = await EventDispatcher(registry).dispatch(_event())

        assert calls == ["first", "second", "third"]
        assert [r.handler_name for r in results] == ["first", "second", "third"]
        assert all(r.success for r in results)

    @pytest.mark.asyncio
    async def test_failing_sync_handler_is_isolated(self):
        """A raising handler becomes a failed result and later handlers still run."""
        calls: list[str] = []
        registry = HandlerRegistry()
        registry.on(PATIENT, RecordingHandler("good", calls))
        registry.on(PATIENT, RecordingHandler("bad", calls, fail=True))
        registry.on(PATIENT, RecordingHandler("another_good", calls))

        results = await EventDispatcher(registry).dispatch(_event())

        assert calls == ["good", "bad", "another_good"]
        assert len(results) == 3
        assert [r.success for r in results] == [True, False, True]
        assert results[1].error_message == "bad exploded"

    @pytest.mark.asyncio
    async def test_async_handlers_all_complete(self):
        """Dispatch returns only after every async handler finished."""
        finished: list[str] = []
        registry = HandlerRegistry()
        registry.on_async(NOTIFY, SlowAsyncHandler("email", 0.03, finished))
        registry.on_async(NOTIFY, SlowAsyncHandler("sms", 0.01, finished, fail=True))
        registry.on_async(NOTIFY, SlowAsyncHandler("push", 0.02, finished))

        results = await EventDispatcher(registry).dispatch(_event(NOTIFY))

        assert sorted(finished) == ["email", "push", "sms"]
        assert len(results) == 3
        assert sum(1 for r in results if not r.success) == 1

    @pytest.mark.asyncio
    async def test_async_handlers_run_concurrently(self):
        started: list[str] = []
        release = asyncio.Event()

        async def waiter(event: WorkflowEvent) -> HandlerResult:
            started.append("waiter")
            await release.wait()
            return HandlerResult.succeeded("waiter")

        async def releaser(event: WorkflowEvent) -> HandlerResult:
            started.append("releaser")
            release.set()
            return HandlerResult.succeeded("releaser")

        registry = HandlerRegistry().on_async(NOTIFY, waiter).on_async(NOTIFY, releaser)

        results = await asyncio.wait_for(EventDispatcher(registry).dispatch(_event(NOTIFY)), timeout=1)

        assert started == ["waiter", "releaser"]
        assert all(r.success for r in results)

    @pytest.mark.asyncio
    async def test_sync_results_precede_async_results(self):
        registry = HandlerRegistry()
        registry.on_async(PATIENT, SlowAsyncHandler("async", 0, []))
        registry.on(PATIENT, RecordingHandler("sync", []))

        results = await EventDispatcher(registry).dispatch(_event())

        assert [r.handler_name for r in results] == ["sync", "async"]

    @pytest.mark.asyncio
    async def test_plain_function_handlers(self):
        """Plain callables work; non-result return values are wrapped."""

        def returns_value(event: WorkflowEvent) -> str:
            return f"seen {event.aggregate_id}"

        async def raises(event: WorkflowEvent) -> None:
            raise ValueError("boom")

        registry = HandlerRegistry().on(PATIENT, returns_value).on_async(PATIENT, raises)

        results = await EventDispatcher(registry).dispatch(_event())

        assert results[0].success
        assert results[0].result_data == "seen 42"
        assert results[0].handler_name.endswith("returns_value")
        assert not results[1].success
        assert results[1].error_message == "boom"

    @pytest.mark.asyncio
    async def test_no_handlers_is_noop(self, log_records):
        results = await EventDispatcher(HandlerRegistry()).dispatch(_event())

        assert results == []
        assert any(r["level"].name == "INFO" and "No sync handlers" in r["message"] for r in log_records)

    @pytest.mark.asyncio
    async def test_duration_is_recorded(self):
        registry = HandlerRegistry().on(PATIENT, RecordingHandler("a", []))
        results = await EventDispatcher(registry).dispatch(_event())
        assert results[0].duration_ms is not None
        assert results[0].duration_ms >= 0

    @pytest.mark.asyncio
    async def test_isolated_events_are_copies(self):
        seen: list[WorkflowEvent] = []

        def capture(event: WorkflowEvent) -> None:
            seen.append(event)

        registry = HandlerRegistry().on(PATIENT, capture).on(PATIENT, capture)
        event = _event()

        await EventDispatcher(registry, isolate_events=True).dispatch(event)

        assert seen[0] == event
        assert seen[0] is not event
        assert seen[0].payload is not event.payload
        assert seen[0] is not seen[1]

    @pytest.mark.asyncio
    async def test_shared_copy_without_isolation(self):
        """Without isolation handlers share one copy, never the caller's event."""
        seen: list[WorkflowEvent] = []
        registry = HandlerRegistry().on(PATIENT, seen.append).on_async(PATIENT, seen.append)
        event = _event()

        await EventDispatcher(registry).dispatch(event)

        assert seen[0] is seen[1]
        assert seen[0] is not event
        assert seen[0] == event

    @pytest.mark.asyncio
    async def test_handler_mutation_does_not_reach_caller(self):
        def rewrite(event: WorkflowEvent) -> None:
            event.payload["patient_id"] = 999

        registry = HandlerRegistry().on(PATIENT, rewrite)
        event = _event()

        await EventDispatcher(registry).dispatch(event)

        assert event.payload == {"patient_id": 7}
