"""
Event Dispatcher - synchronous publish/subscribe for framework events.

Events are either plain strings ("bootstrapping: ...") or objects, in which
case listeners registered for the object's class (or any base class) receive
the object itself. Listeners run in priority order, then registration order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ListenerPriority(Enum):
    """Listener priority / lower values run first."""

    HIGHEST = 0
    HIGH = 25
    NORMAL = 50
    LOW = 75
    LOWEST = 100


@dataclass
class ListenerBinding:
    """Binds a handler to an event key."""

    event: str | type
    handler: Callable[..., Any]
    priority: ListenerPriority = ListenerPriority.NORMAL
    listener_id: str = ""
    once: bool = False


class EventDispatcher:
    """
    Manages listener subscriptions and event dispatching.

    Dispatch is synchronous so the boot phase can announce bootstrappers and
    locale changes without an event loop.
    A listener returning ``False`` stops propagation to later listeners.
    Listener errors propagate to the dispatching caller.
    """

    def __init__(self) -> None:
        self._listeners: dict[str | type, list[ListenerBinding]] = {}
        self._counter = 0

    def listen(
        self,
        event: str | type | list[str | type],
        handler: Callable[..., Any],
        priority: ListenerPriority = ListenerPriority.NORMAL,
        once: bool = False,
    ) -> str:
        """
        Register a handler for one or more events.

        Returns the listener id of the last binding, usable with ``forget_listener``.
        """
        events = event if isinstance(event, list) else [event]
        listener_id = ""
        for key in events:
            self._counter += 1
            listener_id = f"listener_{self._counter}"
            bindings = self._listeners.setdefault(key, [])
            bindings.append(
                ListenerBinding(
                    event=key,
                    handler=handler,
                    priority=priority,
                    listener_id=listener_id,
                    once=once,
                )
            )
            # sort is stable, so equal priorities keep registration order
            bindings.sort(key=lambda b: b.priority.value)
            logger.debug("Registered listener %s for %s", listener_id, _event_name(key))
        return listener_id

    def subscribe(self, subscriber: Any) -> None:
        """Let a subscriber object register its own listeners."""
        subscriber.subscribe(self)

    def dispatch(self, event: str | object, payload: list[Any] | None = None) -> list[Any]:
        """
        Dispatch an event and collect listener responses.

        String events call ``handler(*payload)``; object events call
        ``handler(event)``.
        """
        responses: list[Any] = []
        to_remove: list[ListenerBinding] = []

        for binding in self._bindings_for(event):
            if isinstance(event, str):
                response = binding.handler(*(payload or []))
            else:
                response = binding.handler(event)

            if binding.once:
                to_remove.append(binding)
            if response is False:
                break
            responses.append(response)

        for binding in to_remove:
            bindings = self._listeners.get(binding.event, [])
            if binding in bindings:
                bindings.remove(binding)

        return responses

    def _bindings_for(self, event: str | object) -> list[ListenerBinding]:
        if isinstance(event, str):
            return list(self._listeners.get(event, []))

        bindings: list[ListenerBinding] = []
        for cls in type(event).__mro__:
            bindings.extend(self._listeners.get(cls, []))
        bindings.sort(key=lambda b: b.priority.value)
        return bindings

    def has_listeners(self, event: str | type) -> bool:
        return bool(self._listeners.get(event))

    def forget(self, event: str | type) -> None:
        """Remove every listener of an event."""
        self._listeners.pop(event, None)

    def forget_listener(self, listener_id: str) -> bool:
        for bindings in self._listeners.values():
            for binding in bindings:
                if binding.listener_id == listener_id:
                    bindings.remove(binding)
                    logger.debug("Removed listener %s", listener_id)
                    return True
        return False

    def listener_count(self, event: str | type | None = None) -> int:
        if event is None:
            return sum(len(bindings) for bindings in self._listeners.values())
        return len(self._listeners.get(event, []))

    def clear(self) -> None:
        self._listeners.clear()


def _event_name(event: str | type) -> str:
    return event if isinstance(event, str) else event.__name__
