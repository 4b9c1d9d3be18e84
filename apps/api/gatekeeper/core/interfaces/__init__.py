"""
Core interfaces (protocols) for extensibility.
All backends must implement these protocols to be swappable.
"""

from .queue import QueueBackend, TaskOptions, TaskStatus

__all__ = [
    "QueueBackend",
    "TaskOptions",
    "TaskStatus",
]
