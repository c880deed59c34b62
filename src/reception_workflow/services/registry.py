"""Service registry for wiring the workflow engine."""

from collections.abc import Callable
from functools import lru_cache
from typing import Any, TypeVar, cast

T = TypeVar("T")
ServiceFactory = Callable[[], T]
ServiceProvider = T | ServiceFactory[T]


class ServiceRegistry:
    """Registry of shared services keyed by type, holding singletons or factories."""

    def __init__(self):
        self._services: dict[str, ServiceProvider[Any]] = {}

    def register_singleton(self, service_type: type[T], instance: T) -> None:
        self._services[service_type.__name__] = instance

    def register_factory(self, service_type: type[T], factory: ServiceFactory[T]) -> None:
        """Register a zero-argument factory; it is called on every ``get``."""
        self._services[service_type.__name__] = factory

    def is_registered(self, service_type: type) -> bool:
        return service_type.__name__ in self._services

    def get(self, service_type: type[T]) -> T:
        """Get a service instance by type.

        Raises:
            KeyError: If the requested service is not registered
        """
        service_name = service_type.__name__

        if service_name not in self._services:
            raise KeyError(f"Service {service_name} not registered")

        provider = self._services[service_name]

        # Instances of callable classes (e.g. handlers) are registered as singletons too
        if callable(provider) and not isinstance(provider, service_type):
            return provider()

        return cast(T, provider)

    def clear(self) -> None:
        self._services.clear()


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the process-wide service registry."""
    return ServiceRegistry()
