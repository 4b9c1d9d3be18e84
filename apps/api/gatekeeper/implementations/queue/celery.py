"""
Celery queue backend implementation.

Wraps Celery to provide a consistent async interface.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar, Optional
from functools import partial

from celery import Celery
from celery.result import AsyncResult

from gatekeeper.core.interfaces.queue import TaskStatus, TaskOptions

T = TypeVar("T")


def _celery_state_to_status(state: str) -> TaskStatus:
    """Convert Celery state to TaskStatus."""
    mapping = {
        "PENDING": TaskStatus.PENDING,
        "RECEIVED": TaskStatus.PENDING,
        "RETRY": TaskStatus.PENDING,
        "STARTED": TaskStatus.STARTED,
        "SUCCESS": TaskStatus.SUCCESS,
        "FAILURE": TaskStatus.FAILURE,
        "REVOKED": TaskStatus.FAILURE,
    }
    return mapping.get(state, TaskStatus.PENDING)


class CeleryQueueBackend:
    """
    Celery queue backend implementation.

    Tasks are sent by name, so the API never imports worker code.

    Usage:
        queue = CeleryQueueBackend(broker_url="redis://localhost:6379/0")

        task_id = await queue.enqueue(
            "gatekeeper_worker.tasks.audit.write_audit_record",
            kwargs={"record": record.to_payload()},
            options=TaskOptions(queue="audit"),
        )
    """

    def __init__(
        self,
        app: Optional[Celery] = None,
        broker_url: Optional[str] = None,
        result_backend: Optional[str] = None,
    ):
        """
        Initialize Celery queue backend.

        Args:
            app: Existing Celery application
            broker_url: Broker URL (creates new app if no app provided)
            result_backend: Result backend URL
        """
        if app:
            self._app = app
        else:
            self._app = Celery(
                "gatekeeper-api",
                broker=broker_url or "redis://localhost:6379/0",
                backend=result_backend or "redis://localhost:6379/1",
            )

        self._app.conf.update(
            task_serializer="json",
            accept_content=["json"],
            result_serializer="json",
            # Keep the message on the broker until the worker finishes
            task_acks_late=True,
        )

    @property
    def app(self) -> Celery:
        """Get the Celery application."""
        return self._app

    def register(
        self,
        name: str | None = None,
        **options,
    ) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """Decorator to register a task function on the wrapped app."""
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            self._app.task(name=name, **options)(func)
            return func
        return decorator

    async def enqueue(
        self,
        task_name: str,
        args: tuple = (),
        kwargs: Optional[dict[str, Any]] = None,
        options: Optional[TaskOptions] = None,
    ) -> str:
        """
        Enqueue a task for execution.

        Returns task_id.
        """
        kwargs = kwargs or {}
        options = options or TaskOptions()

        celery_options: dict[str, Any] = {
            "queue": options.queue,
            "priority": options.priority,
            "retry": True,
            "retry_policy": {"max_retries": options.max_retries},
        }
        if options.expires:
            celery_options["expires"] = options.expires

        # send_task blocks on the broker connection
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            partial(
                self._app.send_task,
                task_name,
                args=args,
                kwargs=kwargs,
                **celery_options,
            ),
        )

        return result.id

    async def get_status(self, task_id: str) -> TaskStatus:
        """Get current task status."""
        result = AsyncResult(task_id, app=self._app)
        return _celery_state_to_status(result.state)

    async def queue_length(self, queue: str = "default") -> int:
        """Get number of messages waiting on a broker queue."""
        loop = asyncio.get_running_loop()

        def _length() -> int:
            with self._app.connection_or_acquire() as conn:
                ok = conn.default_channel.queue_declare(queue=queue, passive=True)
                return ok.message_count

        return await loop.run_in_executor(None, _length)
