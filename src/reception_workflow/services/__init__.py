"""Service wiring for the workflow engine."""

from .di import get_workflow_coordinator, register_workflow_services
from .registry import ServiceRegistry, get_service_registry

__all__ = ["ServiceRegistry", "get_service_registry", "get_workflow_coordinator", "register_workflow_services"]
