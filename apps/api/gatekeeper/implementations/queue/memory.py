"""
In-memory queue backend for testing and development.
"""

from __future__ import annotations

import inspect
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar
from dataclasses import dataclass, field
from collections import defaultdict

from gatekeeper.core.interfaces.queue import TaskStatus, TaskOptions

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QueuedTask:
    """Internal representation of a queued task."""
    task_id: str
    task_name: str
    args: tuple
    kwargs: dict[str, Any]
    options: TaskOptions
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: str | None = None
    traceback: str | None = None
    created_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None


class MemoryQueueBackend:
    """
    In-memory queue backend for testing and development.

    With ``execute_immediately`` registered handlers run inside ``enqueue``.
    Without it tasks only pile up, and ``drain`` runs them later, which lets
    tests replay a delivery to check idempotency.

    Usage:
        queue = MemoryQueueBackend(execute_immediately=False)

        @queue.register("gatekeeper_worker.tasks.audit.write_audit_record")
        async def write(record: dict):
            ...

        await queue.enqueue("gatekeeper_worker.tasks.audit.write_audit_record", kwargs={"record": {...}})
        await queue.drain()
    """

    def __init__(self, execute_immediately: bool = True):
        self.execute_immediately = execute_immediately

        self._tasks: dict[str, QueuedTask] = {}
        self._queues: dict[str, list[str]] = defaultdict(list)
        self._handlers: dict[str, Callable] = {}

    def register(
        self,
        name: str | None = None,
        **options,
    ) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """
        Decorator to register a task function.

        Example:
            @queue.register("my_task")
            async def my_task(arg1, arg2):
                return arg1 + arg2
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            task_name = name or f"{func.__module__}.{func.__name__}"
            self._handlers[task_name] = func
            return func
        return decorator

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
        kwargs = kwargs or {}
        options = options or TaskOptions()

        task_id = str(uuid.uuid4())
        task = QueuedTask(
            task_id=task_id,
            task_name=task_name,
            args=args,
            kwargs=kwargs,
            options=options,
        )

        self._tasks[task_id] = task
        self._queues[options.queue].append(task_id)

        if self.execute_immediately:
            await self._execute_task(task)

        return task_id

    async def _execute_task(self, task: QueuedTask) -> None:
        handler = self._handlers.get(task.task_name)

        if not handler:
            task.status = TaskStatus.FAILURE
            task.error = f"No handler registered for task: {task.task_name}"
            task.completed_at = _now()
            return

        task.status = TaskStatus.STARTED

        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(*task.args, **task.kwargs)
            else:
                result = handler(*task.args, **task.kwargs)

            task.status = TaskStatus.SUCCESS
            task.result = result
        except Exception as e:
            task.status = TaskStatus.FAILURE
            task.error = str(e)
            task.traceback = traceback.format_exc()
        finally:
            task.completed_at = _now()

    async def drain(self, queue: str | None = None) -> int:
        """Run every pending task (optionally of one queue). Returns count run."""
        pending = [
            task for task in self._tasks.values()
            if task.status is TaskStatus.PENDING
            and (queue is None or task.options.queue == queue)
        ]
        for task in pending:
            await self._execute_task(task)
        return len(pending)

    async def get_status(self, task_id: str) -> TaskStatus:
        """Get current task status."""
        task = self._tasks.get(task_id)
        if not task:
            return TaskStatus.PENDING
        return task.status

    async def queue_length(self, queue: str = "default") -> int:
        """Get number of tasks enqueued on a queue."""
        return len(self._queues.get(queue, []))

    def tasks(self, queue: str | None = None) -> list[QueuedTask]:
        """Tasks in enqueue order (for assertions in tests)."""
        if queue is None:
            return list(self._tasks.values())
        return [self._tasks[task_id] for task_id in self._queues.get(queue, [])]

    def clear(self) -> None:
        """Clear all tasks (for testing)."""
        self._tasks.clear()
        self._queues.clear()
