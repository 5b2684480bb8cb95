"""
Route middleware registries - middleware attached to individual routes.

Routing itself lives outside this package; the router records the middleware
and the exclusions of each route here, keyed by ``(server, route, method)``,
and hands the kernel a ``Dispatched`` result per request.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dispatched:
    """Result of a route lookup."""

    found: bool
    route: str = ""
    method: str = ""

    @classmethod
    def not_found(cls) -> Dispatched:
        return cls(found=False)

    def is_found(self) -> bool:
        return self.found


class RouteMiddlewareRegistry:
    """Ordered middleware descriptors per ``(server, route, method)``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, str], list[str]] = {}
        self._lock = threading.Lock()

    def add(self, server: str, route: str, methods: str | list[str], middleware: list[str]) -> None:
        """Attach middleware to a route for one or more HTTP methods."""
        if isinstance(methods, str):
            methods = [methods]
        with self._lock:
            for method in methods:
                key = (server, route, method.upper())
                entries = self._entries.setdefault(key, [])
                for descriptor in middleware:
                    if descriptor not in entries:
                        entries.append(descriptor)
                logger.debug("Route %s %s on %s now has %s", method, route, server, entries)

    def get(self, server: str, route: str, method: str) -> list[str]:
        return list(self._entries.get((server, route, method.upper()), []))

    def has(self, server: str, route: str, method: str) -> bool:
        return (server, route, method.upper()) in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
