"""Queue backend implementations."""

from gatekeeper.implementations.queue.memory import MemoryQueueBackend
from gatekeeper.implementations.queue.celery import CeleryQueueBackend

__all__ = ["MemoryQueueBackend", "CeleryQueueBackend"]
