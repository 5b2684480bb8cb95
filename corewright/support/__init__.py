"""
Support module - base classes for application wiring.
"""

from corewright.support.event_service_provider import EventServiceProvider
from corewright.support.service_provider import ServiceProvider

__all__ = ["EventServiceProvider", "ServiceProvider"]
