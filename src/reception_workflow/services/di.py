"""Workflow engine wiring.

Builds the engine's collaborators once and registers them as singletons, so
every caller in the process shares the same event log, handler configuration
and coordinator.
"""

from loguru import logger

from reception_workflow.event_bus import HandlerRegistry
from reception_workflow.event_store import EventLog
from reception_workflow.handlers import build_default_handler_registry
from reception_workflow.logging import setup_logging
from reception_workflow.services.registry import ServiceRegistry, get_service_registry
from reception_workflow.settings import WorkflowSettings, get_settings
from reception_workflow.workflow import TransitionHistory, TransitionTable, WorkflowCoordinator


def register_workflow_services(
    registry: ServiceRegistry,
    settings: WorkflowSettings | None = None,
    handlers: HandlerRegistry | None = None,
) -> WorkflowCoordinator:
    """Register the workflow engine services in ``registry``.

    Args:
        registry: Service registry instance to register services in
        settings: Engine settings; defaults to ``get_settings()``
        handlers: Handler configuration; defaults to the standard reception handlers

    Returns:
        The registered coordinator
    """
    logger.debug("Registering workflow services in DI container")

    settings = settings or get_settings()
    event_log = EventLog()
    transition_table = TransitionTable()
    history = TransitionHistory()
    handlers = handlers or build_default_handler_registry()

    coordinator = WorkflowCoordinator(
        event_log=event_log,
        handlers=handlers,
        transition_table=transition_table,
        audit_sink=history,
        settings=settings,
    )

    registry.register_singleton(WorkflowSettings, settings)
    registry.register_singleton(EventLog, event_log)
    registry.register_singleton(TransitionTable, transition_table)
    registry.register_singleton(TransitionHistory, history)
    registry.register_singleton(HandlerRegistry, handlers)
    registry.register_singleton(WorkflowCoordinator, coordinator)
    return coordinator


def get_workflow_coordinator() -> WorkflowCoordinator:
    """Return the process-wide coordinator, wiring it on first use.

    The first call also configures logging from ``WorkflowSettings``
    (``log_level``, ``log_json``).
    """
    registry = get_service_registry()
    if not registry.is_registered(WorkflowCoordinator):
        settings = get_settings()
        setup_logging(settings.log_level, json=settings.log_json)
        return register_workflow_services(registry, settings=settings)
    return registry.get(WorkflowCoordinator)
