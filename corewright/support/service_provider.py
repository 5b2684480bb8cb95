"""
Service provider base - the unit of application wiring.

Lifecycle:
1. ``__init__(app)`` - constructed by ``Application.register``
2. ``register()`` - bind services into the container
3. ``boot()`` - optional; runs once every provider has registered, with its
   annotated parameters injected by the container
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, Hashable

if TYPE_CHECKING:
    from corewright.foundation.application import Application

logger = logging.getLogger(__name__)


class ServiceProvider:
    """
    Base class of all service providers.

    ``bindings`` and ``singletons`` are applied to the container right after
    ``register()`` returns, as a shorthand for a series of ``bind`` calls.
    Subclasses that need to run code after registration define ``boot``.
    """

    bindings: ClassVar[dict[Hashable, Any]] = {}
    singletons: ClassVar[dict[Hashable, Any]] = {}

    def __init__(self, app: Application) -> None:
        self.app = app
        self._booting_callbacks: list[Callable[[], Any]] = []
        self._booted_callbacks: list[Callable[[], Any]] = []
        self._booted = False

    def register(self) -> None:
        """Register services into the container."""
        pass

    def booting(self, callback: Callable[[], Any]) -> None:
        """Run a callback right before this provider boots."""
        self._booting_callbacks.append(callback)

    def booted(self, callback: Callable[[], Any]) -> None:
        """Run a callback right after this provider boots."""
        self._booted_callbacks.append(callback)

    def call_booting_callbacks(self) -> None:
        index = 0
        while index < len(self._booting_callbacks):
            self.app.call(self._booting_callbacks[index])
            index += 1

    def call_booted_callbacks(self) -> None:
        index = 0
        while index < len(self._booted_callbacks):
            self.app.call(self._booted_callbacks[index])
            index += 1

    @property
    def is_booted(self) -> bool:
        return self._booted

    def mark_booted(self) -> None:
        self._booted = True

    def call_after_resolving(self, identity: Hashable, callback: Callable[[Any, Any], None]) -> None:
        """Run a callback whenever the container resolves ``identity``."""
        self.app.after_resolving(identity, callback)

        if self.app.resolved(identity):
            callback(self.app.make(identity), self.app)

    def provides(self) -> list[Hashable]:
        """Identities this provider binds, for introspection."""
        return [*self.bindings, *self.singletons]

    @property
    def name(self) -> str:
        cls = type(self)
        return f"{cls.__module__}.{cls.__qualname__}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} booted={self._booted}>"
