"""
Register all backend implementations with their registries.

Import this module in app startup to register all implementations.
"""

from gatekeeper.core.plugins.registry import (
    audit_sinks,
    queue_backends,
)
from gatekeeper.core.config import settings


def register_backends() -> None:
    """Register all backend implementations."""

    # ============ Queue Backends ============

    def create_celery_queue(**config):
        from gatekeeper.implementations.queue.celery import CeleryQueueBackend
        return CeleryQueueBackend(
            broker_url=config.get("broker_url", settings.queue.broker_url),
            result_backend=config.get("result_backend", settings.queue.result_backend),
        )

    def create_memory_queue(**config):
        from gatekeeper.implementations.queue.memory import MemoryQueueBackend
        return MemoryQueueBackend(
            execute_immediately=config.get("execute_immediately", True),
        )

    queue_backends.register("celery", create_celery_queue, default=True)
    queue_backends.register("memory", create_memory_queue)

    # ============ Audit Sinks ============

    def create_database_sink(**config):
        from gatekeeper.models.database import async_session_factory
        from gatekeeper.services.audit import DatabaseAuditSink
        return DatabaseAuditSink(config.get("session_factory", async_session_factory))

    def create_queue_sink(**config):
        from gatekeeper.services.audit import QueueAuditSink
        queue = config.get("queue") or queue_backends.get(config.get("queue_backend"))
        return QueueAuditSink(
            queue,
            task_name=config.get("task_name", settings.audit.task_name),
            queue_name=config.get("queue_name", settings.audit.queue),
        )

    audit_sinks.register("database", create_database_sink, default=True)
    audit_sinks.register("queue", create_queue_sink)
