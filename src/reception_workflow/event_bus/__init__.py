"""Handler dispatch for the reception workflow.

This package provides the pieces that fan a stored event out to the code
interested in it:

- **EventHandler**: the single-method handler capability
- **HandlerRegistry**: event type -> ordered sync handlers / async handlers,
  built once at startup and injected
- **EventDispatcher**: runs sync handlers in registration order, then awaits
  all async handlers concurrently, converting every failure into a failed
  ``HandlerResult``

## Quick Start

```python
from reception_workflow.event_bus import EventDispatcher, HandlerRegistry
from reception_workflow.events import HandlerResult, WorkflowEvent, WorkflowEventType

def log_payment(event: WorkflowEvent) -> HandlerResult:
    return HandlerResult.succeeded("log_payment")

registry = HandlerRegistry().on(WorkflowEventType.PAYMENT_PROCESSING, log_payment)
dispatcher = EventDispatcher(registry)
results = await dispatcher.dispatch(WorkflowEvent(aggregate_id=42, event_type="PaymentProcessing"))
```
"""

from .bus import EventDispatcher
from .core import EventHandler, handler_name
from .registry import HandlerRegistry

__all__ = [
    "EventDispatcher",
    "EventHandler",
    "HandlerRegistry",
    "handler_name",
]
