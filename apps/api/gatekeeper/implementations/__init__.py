"""
Backend implementations for core interfaces.
"""

from gatekeeper.implementations.queue.memory import MemoryQueueBackend
from gatekeeper.implementations.register import register_backends

__all__ = [
    "MemoryQueueBackend",
    "register_backends",
]
