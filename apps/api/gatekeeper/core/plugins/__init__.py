"""
Registries for swappable backends.
"""

from .registry import PluginRegistry, audit_sinks, queue_backends

__all__ = [
    "PluginRegistry",
    "audit_sinks",
    "queue_backends",
]
