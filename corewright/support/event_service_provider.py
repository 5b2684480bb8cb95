"""
Event service provider - declarative listener wiring.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from corewright.kernel.events import EventDispatcher
from corewright.support.service_provider import ServiceProvider

logger = logging.getLogger(__name__)


class EventServiceProvider(ServiceProvider):
    """
    Registers event listeners declared on the class.

    ``listen`` maps an event (name or class) to listener identities; each
    listener is made through the container and its ``handle`` method bound.
    ``subscribe`` lists subscriber identities whose ``subscribe(events)``
    registers their own listeners.
    """

    listen: ClassVar[dict[Any, list[Any]]] = {}
    subscribe: ClassVar[list[Any]] = []

    def register(self) -> None:
        events: EventDispatcher = self.app.make("events")

        for event, listeners in self.listen.items():
            for listener in listeners:
                instance = self.app.make(listener)
                events.listen(event, instance.handle)
                logger.debug("Listener %s bound to %s", type(instance).__name__, event)

        for subscriber in self.subscribe:
            events.subscribe(self.app.make(subscriber))
