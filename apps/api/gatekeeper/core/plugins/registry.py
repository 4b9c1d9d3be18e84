"""
Backend registry for swappable components.
"""
from __future__ import annotations

from typing import TypeVar, Generic, Callable, Any
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PluginRegistry(Generic[T]):
    """
    Generic registry mapping backend names to factories.

    Example usage:
    ```python
    audit_sinks = PluginRegistry[AuditSink]("audit sink")

    audit_sinks.register("database", create_database_sink, default=True)
    audit_sinks.register("queue", create_queue_sink)

    sink = audit_sinks.get(settings.audit.sink, config={...})
    ```
    """

    def __init__(self, name: str):
        self.name = name
        self._factories: dict[str, Callable[..., T]] = {}
        self._default: str | None = None

    def register(
        self,
        name: str,
        factory: Callable[..., T],
        *,
        default: bool = False,
    ) -> None:
        """
        Register a backend implementation.

        Args:
            name: Unique identifier for this implementation
            factory: Callable that creates the implementation
            default: Set as default implementation
        """
        if name in self._factories:
            logger.warning(f"Overwriting existing {self.name} backend: {name}")

        self._factories[name] = factory

        if default or self._default is None:
            self._default = name

        logger.debug(f"Registered {self.name} backend: {name}")

    def get(
        self,
        name: str | None = None,
        *,
        config: dict[str, Any] | None = None,
    ) -> T:
        """
        Build a backend implementation.

        Args:
            name: Backend name (uses default if not specified)
            config: Keyword arguments passed to the factory
        """
        name = name or self._default

        if name is None:
            raise ValueError(f"No {self.name} backend registered")

        if name not in self._factories:
            available = ", ".join(self._factories.keys())
            raise ValueError(
                f"Unknown {self.name} backend: {name}. "
                f"Available: {available}"
            )

        return self._factories[name](**(config or {}))

    def list(self) -> list[str]:
        """List all registered backend names."""
        return list(self._factories.keys())

    def has(self, name: str) -> bool:
        """Check if backend is registered."""
        return name in self._factories

    @property
    def default(self) -> str | None:
        """Get default backend name."""
        return self._default


# Global registries
queue_backends = PluginRegistry[Any]("queue")
audit_sinks = PluginRegistry[Any]("audit sink")
