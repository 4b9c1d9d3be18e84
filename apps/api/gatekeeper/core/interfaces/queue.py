"""
Queue backend protocol.

The audit logger hands records to a queue backend when AUDIT_SINK=queue.
Implementations: CeleryQueueBackend, MemoryQueueBackend
"""
from __future__ import annotations

from typing import Protocol, Any, Callable, TypeVar
from dataclasses import dataclass
from enum import Enum


class TaskStatus(str, Enum):
    PENDING = "pending"
    STARTED = "started"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class TaskOptions:
    """Options for task delivery."""
    queue: str = "default"
    priority: int = 0  # Higher = more priority
    max_retries: int = 5
    expires: int | None = None  # Seconds


T = TypeVar("T")


class QueueBackend(Protocol):
    """
    Protocol for task queue backends.

    Delivery is at-least-once: a task may run more than once for one
    enqueue, so handlers must be idempotent.
    """

    async def enqueue(
        self,
        task_name: str,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        options: TaskOptions | None = None,
    ) -> str:
        """
        Enqueue a task for execution.
        Returns task_id.
        """
        ...

    async def get_status(self, task_id: str) -> TaskStatus:
        """Get current task status."""
        ...

    async def queue_length(self, queue: str = "default") -> int:
        """Get number of tasks enqueued on a queue."""
        ...

    def register(
        self,
        name: str | None = None,
        **options,
    ) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """Decorator to register a task function."""
        ...
