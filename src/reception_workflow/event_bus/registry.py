"""Handler configuration for the workflow dispatcher.

The registry maps each event type to an ordered list of synchronous handlers
and, separately, to a list of asynchronous handlers. It is built once at
startup, frozen, and handed to the dispatcher by injection.
"""

from loguru import logger

from reception_workflow.event_bus.core import EventHandler, HandlerCallable, handler_name
from reception_workflow.events.types import WorkflowEventType
from reception_workflow.exceptions import HandlerRegistrationError

Handler = EventHandler | HandlerCallable


class HandlerRegistry:
    """Event-type to handler mapping, split into sync and async sets.

    Example:
        ```python
        registry = HandlerRegistry()
        registry.on(WorkflowEventType.PATIENT_VALIDATION, PatientValidationHandler())
        registry.on_async(WorkflowEventType.NOTIFICATION_SENDING, EmailNotificationHandler())
        registry.freeze()
        ```
    """

    def __init__(self) -> None:
        self._sync_handlers: dict[WorkflowEventType, list[Handler]] = {}
        self._async_handlers: dict[WorkflowEventType, list[Handler]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def on(self, event_type: WorkflowEventType | str, handler: Handler) -> "HandlerRegistry":
        """Register a synchronous handler; handlers run in registration order."""
        key = self._validate(event_type, handler)
        self._sync_handlers.setdefault(key, []).append(handler)
        logger.debug("Registered sync handler for {event_type}: {handler}", event_type=key, handler=handler_name(handler))
        return self

    def on_async(self, event_type: WorkflowEventType | str, handler: Handler) -> "HandlerRegistry":
        """Register an asynchronous handler; these run concurrently."""
        key = self._validate(event_type, handler)
        self._async_handlers.setdefault(key, []).append(handler)
        logger.debug("Registered async handler for {event_type}: {handler}", event_type=key, handler=handler_name(handler))
        return self

    def freeze(self) -> None:
        """Reject any further registration."""
        self._frozen = True

    def sync_handlers(self, event_type: WorkflowEventType) -> tuple[Handler, ...]:
        return tuple(self._sync_handlers.get(event_type, ()))

    def async_handlers(self, event_type: WorkflowEventType) -> tuple[Handler, ...]:
        return tuple(self._async_handlers.get(event_type, ()))

    def get_handler_count(self, event_type: WorkflowEventType) -> int:
        """Number of handlers (sync and async) registered for an event type."""
        return len(self._sync_handlers.get(event_type, ())) + len(self._async_handlers.get(event_type, ()))

    def get_registered_events(self) -> list[WorkflowEventType]:
        """Event types with at least one handler, in enum order."""
        registered = set(self._sync_handlers) | set(self._async_handlers)
        return [event_type for event_type in WorkflowEventType if event_type in registered]

    def _validate(self, event_type: WorkflowEventType | str, handler: Handler) -> WorkflowEventType:
        if self._frozen:
            raise HandlerRegistrationError("Handler registry is frozen; register handlers before building the coordinator")

        try:
            key = WorkflowEventType(event_type)
        except ValueError as e:
            raise HandlerRegistrationError(f"Unknown event type: {event_type!r}") from e

        if not callable(handler):
            raise HandlerRegistrationError(f"Handler must be callable: {handler!r}")

        return key
