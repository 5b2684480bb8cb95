"""
Kernel module - the container, event dispatcher and logging setup that every
other part of the framework builds on.
"""

from corewright.kernel.container import (
    Container,
    ServiceNotFoundError,
    ServiceResolutionError,
    ServiceScope,
)
from corewright.kernel.events import EventDispatcher, ListenerPriority

__all__ = [
    "Container",
    "EventDispatcher",
    "ListenerPriority",
    "ServiceNotFoundError",
    "ServiceResolutionError",
    "ServiceScope",
]
