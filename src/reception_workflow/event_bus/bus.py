"""Event dispatcher for workflow handlers.

This module provides the ``EventDispatcher`` that fans a stored event out to
the handlers registered for its type in a ``HandlerRegistry``.

## Key Features

- **Ordered Sync Fan-out**: synchronous handlers run one after another in
  registration order
- **Concurrent Async Fan-out**: asynchronous handlers start together and are
  all awaited before returning (fire-and-collect)
- **Error Isolation**: a failing handler becomes a failed ``HandlerResult``;
  siblings still run
- **Event Isolation**: optionally give every handler its own deep copy

## Usage

```python
dispatcher = EventDispatcher(registry)
results = await dispatcher.dispatch(event)
failed = [r for r in results if not r.success]
```
"""

import asyncio
import inspect
import time

from loguru import logger

from reception_workflow.event_bus.core import handler_name
from reception_workflow.event_bus.registry import Handler, HandlerRegistry
from reception_workflow.events.types import HandlerResult, WorkflowEvent


class EventDispatcher:
    """Dispatches events to sync and async handler sets.

    The dispatcher imposes no timeout: a handler that never completes stalls
    the processing of that event.
    """

    def __init__(self, registry: HandlerRegistry, isolate_events: bool = False) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Handler configuration; frozen here if not frozen already.
            isolate_events: If True, each handler receives its own deep copy of the
                event; otherwise all handlers of one dispatch share a single copy.
        """
        registry.freeze()
        self._registry = registry
        self._isolate_events = isolate_events
        logger.debug("EventDispatcher initialized (isolate_events={isolate_events})", isolate_events=isolate_events)

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def dispatch(self, event: WorkflowEvent) -> list[HandlerResult]:
        """Run the sync fan-out, then the async fan-out, and collect every result.

        Handlers never see the caller's event object, so a handler that mutates
        the payload cannot reach the stored copy in the event log.
        """
        working = event.model_copy(deep=True)
        results = await self.run_sync_handlers(working)
        results.extend(await self.run_async_handlers(working))

        failed = sum(1 for r in results if not r.success)
        if failed:
            logger.warning(
                "Event {event_type} for aggregate {aggregate_id}: {succeeded} successful, {failed} failed handlers",
                event_type=event.event_type,
                aggregate_id=event.aggregate_id,
                succeeded=len(results) - failed,
                failed=failed,
            )
        return results

    async def run_sync_handlers(self, event: WorkflowEvent) -> list[HandlerResult]:
        handlers = self._registry.sync_handlers(event.event_type)
        if not handlers:
            logger.info("No sync handlers registered for {event_type}", event_type=event.event_type)
            return []

        logger.debug("Running {count} sync handlers for {event_type}", count=len(handlers), event_type=event.event_type)
        results = []
        for handler in handlers:
            results.append(await self._execute_handler(handler, self._event_for(event)))
        return results

    async def run_async_handlers(self, event: WorkflowEvent) -> list[HandlerResult]:
        handlers = self._registry.async_handlers(event.event_type)
        if not handlers:
            logger.info("No async handlers registered for {event_type}", event_type=event.event_type)
            return []

        logger.debug(
            "Running {count} async handlers concurrently for {event_type}", count=len(handlers), event_type=event.event_type
        )
        tasks = [self._execute_handler(handler, self._event_for(event)) for handler in handlers]
        return list(await asyncio.gather(*tasks))

    def _event_for(self, event: WorkflowEvent) -> WorkflowEvent:
        return event.model_copy(deep=True) if self._isolate_events else event

    async def _execute_handler(self, handler: Handler, event: WorkflowEvent) -> HandlerResult:
        """Execute one handler and convert its outcome into a ``HandlerResult``.

        Args:
            handler: Handler instance or plain callable
            event: The event to pass to the handler

        Returns:
            The handler's own result, a successful result wrapping any other
            return value, or a failed result carrying the exception text
        """
        name = handler_name(handler)
        started = time.perf_counter()
        try:
            logger.trace("Executing handler {handler} for event {event_id}", handler=name, event_id=event.event_id)
            outcome = handler(event)
            if inspect.isawaitable(outcome):
                outcome = await outcome

            if isinstance(outcome, HandlerResult):
                result = outcome
            else:
                result = HandlerResult.succeeded(name, outcome)

        except Exception as e:
            logger.opt(exception=e).error(
                "Handler {handler} failed for event {event_id}: {error}",
                handler=name,
                event_id=event.event_id,
                error=str(e),
            )
            result = HandlerResult.failed(name, str(e) or type(e).__name__)

        if result.duration_ms is None:
            result = result.model_copy(update={"duration_ms": (time.perf_counter() - started) * 1000})

        logger.debug(
            "Handler {handler} finished for aggregate {aggregate_id}: success={success}",
            handler=result.handler_name,
            aggregate_id=event.aggregate_id,
            success=result.success,
        )
        return result
