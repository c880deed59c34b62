"""Core handler abstraction for the workflow dispatch path.

A handler is a unit of reactive logic invoked when an event of a given type
is processed. Handlers expose a single capability, ``handle(event)``, which
returns a ``HandlerResult``. ``handle`` may be a plain method or a coroutine;
the dispatcher awaits the result when needed.

## Usage Example

```python
from reception_workflow.event_bus import EventHandler, HandlerRegistry
from reception_workflow.events import HandlerResult, WorkflowEvent, WorkflowEventType

class BedAllocationHandler(EventHandler):
    def __init__(self, ward_service: WardService):
        self.ward_service = ward_service

    async def handle(self, event: WorkflowEvent) -> HandlerResult:
        bed = await self.ward_service.reserve(event.aggregate_id)
        return HandlerResult.succeeded(self.name, {"bed": bed})

registry = HandlerRegistry()
registry.on_async(WorkflowEventType.PATIENT_VALIDATION, BedAllocationHandler(ward_service))
```

Plain callables taking the event are accepted as handlers as well; any
non-``HandlerResult`` return value is wrapped into a successful result.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from reception_workflow.events.types import HandlerResult, WorkflowEvent

HandlerCallable = Callable[[WorkflowEvent], Any]


class EventHandler(ABC):
    """Base class for workflow event handlers.

    Concrete handlers are registered explicitly per event type in a
    ``HandlerRegistry``; they receive their collaborators through the
    constructor so tests can pass doubles.
    """

    @property
    def name(self) -> str:
        """Name reported in ``HandlerResult.handler_name``."""
        return type(self).__name__

    @abstractmethod
    def handle(self, event: WorkflowEvent) -> HandlerResult | Awaitable[HandlerResult]:
        """Handle the event.

        Args:
            event: The stored event being processed.

        Returns:
            The handler's result, or an awaitable resolving to it.

        Raises:
            Any exception raised here is caught by the dispatcher and turned
            into a failed ``HandlerResult`` carrying the error text.
        """

    def __call__(self, event: WorkflowEvent) -> HandlerResult | Awaitable[HandlerResult]:
        return self.handle(event)

    def __repr__(self) -> str:
        return f"<{self.name}>"


def handler_name(handler: EventHandler | HandlerCallable) -> str:
    """Return the display name of a handler instance or plain callable."""
    if isinstance(handler, EventHandler):
        return handler.name
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None) or type(handler).__name__
