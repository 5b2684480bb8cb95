"""
HTTP Kernel - middleware resolution and ordering.

For every request the kernel turns the configured middleware into an ordered
tuple of ``ParsedMiddleware``:

1. global middleware, then the middleware registered on the matched route;
2. aliases are substituted and groups expanded in place;
3. duplicates collapse by signature (first position, last value wins);
4. route exclusions are removed;
5. the result is reordered to honour the priority list.

Results are cached per ``(server, route, method)`` until any configuration
mutator runs.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from corewright.http.parsed_middleware import ParsedMiddleware
from corewright.http.route_middleware import Dispatched, RouteMiddlewareRegistry

logger = logging.getLogger(__name__)

NO_ROUTE_CACHE_KEY = "none"

CacheKey = tuple[str, str, str] | str


class HttpKernel:
    """
    Middleware resolver bound to one server.

    Subclasses usually declare the middleware tables as class attributes::

        class Kernel(HttpKernel):
            middleware = ["TrimStrings"]
            middleware_groups = {"web": ["EncryptCookies", "StartSession"]}
            middleware_aliases = {"auth": "Authenticate"}
            middleware_priority = ["StartSession", "Authenticate"]

    Instances copy those tables, so mutators never leak between kernels.
    """

    middleware: list[str] = []
    middleware_groups: dict[str, list[str]] = {}
    middleware_aliases: dict[str, str] = {}
    middleware_priority: list[str] = []

    def __init__(
        self,
        server_name: str = "http",
        route_middleware: RouteMiddlewareRegistry | None = None,
        route_exclusions: RouteMiddlewareRegistry | None = None,
    ) -> None:
        self.server_name = server_name
        self.route_middleware = route_middleware or RouteMiddlewareRegistry()
        self.route_exclusions = route_exclusions or RouteMiddlewareRegistry()

        self._middleware: list[str] = list(type(self).middleware)
        self._groups: dict[str, list[str]] = {
            name: list(members) for name, members in type(self).middleware_groups.items()
        }
        self._aliases: dict[str, str] = dict(type(self).middleware_aliases)
        self._priority: list[str] = list(type(self).middleware_priority)

        self._parsed: dict[str, ParsedMiddleware] = {}
        self._cache: dict[CacheKey, tuple[ParsedMiddleware, ...]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def get_middleware_for_request(self, dispatched: Dispatched) -> tuple[ParsedMiddleware, ...]:
        """Resolve the middleware for a dispatched request on this server."""
        return self.resolve_for_request(
            self.server_name, dispatched.route, dispatched.method, dispatched.found
        )

    def resolve_for_request(
        self,
        server: str,
        route: str,
        method: str,
        dispatch_found: bool,
    ) -> tuple[ParsedMiddleware, ...]:
        """
        Resolve the ordered middleware for a route.

        Args:
            server: Server name the request arrived on
            route: Route identifier of the matched route
            method: HTTP method of the request
            dispatch_found: Whether routing matched a route at all

        Returns:
            The cached tuple for this route, built on first use.

        Raises:
            InvalidMiddlewareExclusionError: A route exclusion carries parameters.
        """
        cache_key: CacheKey = (server, route, method) if dispatch_found else NO_ROUTE_CACHE_KEY

        with self._lock:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

            # Registered and excluded middleware are only fetched on a miss
            if dispatch_found:
                registered = self.route_middleware.get(server, route, method)
                excluded = self.route_exclusions.get(server, route, method)
            else:
                registered = []
                excluded = []

            resolved = self.resolve_middleware([*self._middleware, *registered], excluded)

            if resolved and self._priority:
                resolved = self.sort_middleware(resolved)

            result = tuple(resolved)
            self._cache[cache_key] = result
            logger.debug(
                "Resolved middleware for %s: %s",
                cache_key,
                [m.signature for m in result],
            )
            return result

    def resolve_middleware(
        self,
        middlewares: Iterable[str],
        excluded: Iterable[str] = (),
    ) -> list[ParsedMiddleware]:
        """Expand aliases and groups, deduplicate by signature, then apply exclusions."""
        resolved: dict[str, ParsedMiddleware] = {}

        for descriptor in middlewares:
            parsed = self.parse_middleware(descriptor)
            name = parsed.name

            if name in self._aliases:
                # Keyed by the descriptor as written, valued by the alias target
                resolved[parsed.signature] = self.parse_middleware(
                    self._aliases[name], parsed.parameters
                )
                continue

            if name in self._groups:
                for member in self._groups[name]:
                    member_parsed = self.parse_middleware(member)
                    if member_parsed.name in self._aliases:
                        member_parsed = self.parse_middleware(
                            self._aliases[member_parsed.name], member_parsed.parameters
                        )
                    resolved[member_parsed.signature] = member_parsed
                continue

            resolved[parsed.signature] = parsed

        excluded = list(excluded)
        if excluded:
            excluded_names = set(self.expand_excluded_middleware(excluded))
            return [m for m in resolved.values() if m.name not in excluded_names]

        return list(resolved.values())

    def expand_excluded_middleware(self, excluded: Iterable[str]) -> list[str]:
        """
        Expand exclusions to the middleware names they remove.

        Aliases resolve to their target's name and groups to the names of
        their members (member aliases resolved one level).
        """
        expanded: list[str] = []

        for descriptor in excluded:
            # Exclusions remove a middleware entirely, never one parameterization
            if ":" in descriptor:
                raise InvalidMiddlewareExclusionError(descriptor)

            if descriptor in self._aliases:
                expanded.append(self.parse_middleware(self._aliases[descriptor]).name)
                continue

            if descriptor in self._groups:
                for member in self._groups[descriptor]:
                    name = self.parse_middleware(member).name
                    if name in self._aliases:
                        name = self.parse_middleware(self._aliases[name]).name
                    expanded.append(name)
                continue

            expanded.append(descriptor)

        return expanded

    def sort_middleware(self, middlewares: list[ParsedMiddleware]) -> list[ParsedMiddleware]:
        """
        Reorder middleware so priority-listed entries follow the priority list.

        Each pass scans left to right, remembering the last priority-listed
        entry seen. The first entry ranked ahead of it is moved into its slot
        and the scan starts over, until a pass moves nothing.
        """
        ordered = list(middlewares)
        ranks = {name: index for index, name in reversed(list(enumerate(self._priority)))}

        while True:
            last_index = 0
            last_rank: int | None = None
            move: tuple[int, int] | None = None

            for index, entry in enumerate(ordered):
                rank = ranks.get(entry.name)
                if rank is None:
                    continue
                if last_rank is not None and rank < last_rank:
                    move = (index, last_index)
                    break
                last_index = index
                last_rank = rank

            if move is None:
                return ordered

            source, target = move
            ordered.insert(target, ordered.pop(source))

    def priority_map_index(self, name: str) -> int | None:
        """Position of a middleware name in the priority list."""
        try:
            return self._priority.index(name)
        except ValueError:
            return None

    def parse_middleware(
        self,
        middleware: str,
        parameters: Iterable[str] = (),
    ) -> ParsedMiddleware:
        """Parse a descriptor, caching by the (parameter-extended) descriptor."""
        parameters = tuple(parameters)
        if parameters:
            # only used when passing parameters through an alias or group
            middleware = f"{middleware}:{','.join(parameters)}"

        parsed = self._parsed.get(middleware)
        if parsed is None:
            parsed = self._parsed[middleware] = ParsedMiddleware.parse(middleware)
        return parsed

    # ------------------------------------------------------------------
    # Global middleware
    # ------------------------------------------------------------------

    def has_middleware(self, middleware: str) -> bool:
        return middleware in self._middleware

    def prepend_middleware(self, middleware: str) -> HttpKernel:
        """Add a middleware to the beginning of the stack if it does not already exist."""
        with self._lock:
            if middleware not in self._middleware:
                self._middleware.insert(0, middleware)
            self._flush_cache()
        return self

    def push_middleware(self, middleware: str) -> HttpKernel:
        """Add a middleware to the end of the stack if it does not already exist."""
        with self._lock:
            if middleware not in self._middleware:
                self._middleware.append(middleware)
            self._flush_cache()
        return self

    def get_global_middleware(self) -> list[str]:
        return list(self._middleware)

    def set_global_middleware(self, middleware: Iterable[str]) -> HttpKernel:
        with self._lock:
            self._middleware = list(middleware)
            self._flush_cache()
        return self

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def prepend_middleware_to_group(self, group: str, middleware: str) -> HttpKernel:
        """
        Prepend a middleware to a group.

        Raises:
            UnknownMiddlewareGroupError: The group has not been defined.
        """
        with self._lock:
            members = self._require_group(group)
            if middleware not in members:
                members.insert(0, middleware)
            self._flush_cache()
        return self

    def append_middleware_to_group(self, group: str, middleware: str) -> HttpKernel:
        """
        Append a middleware to a group.

        Raises:
            UnknownMiddlewareGroupError: The group has not been defined.
        """
        with self._lock:
            members = self._require_group(group)
            if middleware not in members:
                members.append(middleware)
            self._flush_cache()
        return self

    def get_middleware_groups(self) -> dict[str, list[str]]:
        return {name: list(members) for name, members in self._groups.items()}

    def set_middleware_groups(self, groups: dict[str, Iterable[str]]) -> HttpKernel:
        with self._lock:
            self._groups = {name: list(members) for name, members in groups.items()}
            self._flush_cache()
        return self

    def add_middleware_group(self, group: str, middleware: Iterable[str]) -> HttpKernel:
        """Define a group, or extend it when it already exists."""
        with self._lock:
            self._groups[group] = [*self._groups.get(group, []), *middleware]
            self._flush_cache()
        return self

    def _require_group(self, group: str) -> list[str]:
        if group not in self._groups:
            raise UnknownMiddlewareGroupError(f"The [{group}] middleware group has not been defined.")
        return self._groups[group]

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def get_middleware_aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def set_middleware_aliases(self, aliases: dict[str, str]) -> HttpKernel:
        with self._lock:
            self._aliases = dict(aliases)
            self._flush_cache()
        return self

    # ------------------------------------------------------------------
    # Priority
    # ------------------------------------------------------------------

    def get_middleware_priority(self) -> list[str]:
        return list(self._priority)

    def set_middleware_priority(self, priority: Iterable[str]) -> HttpKernel:
        with self._lock:
            self._priority = list(priority)
            self._flush_cache()
        return self

    def prepend_to_middleware_priority(self, middleware: str) -> HttpKernel:
        with self._lock:
            if middleware not in self._priority:
                self._priority.insert(0, middleware)
            self._flush_cache()
        return self

    def append_to_middleware_priority(self, middleware: str) -> HttpKernel:
        with self._lock:
            if middleware not in self._priority:
                self._priority.append(middleware)
            self._flush_cache()
        return self

    def add_to_middleware_priority_before(
        self, before: str | Iterable[str], middleware: str
    ) -> HttpKernel:
        """Insert a middleware into the priority list ahead of the given ones."""
        return self._add_to_middleware_priority_relative(before, middleware, after=False)

    def add_to_middleware_priority_after(
        self, after: str | Iterable[str], middleware: str
    ) -> HttpKernel:
        """Insert a middleware into the priority list behind the given ones."""
        return self._add_to_middleware_priority_relative(after, middleware, after=True)

    def _add_to_middleware_priority_relative(
        self,
        existing: str | Iterable[str],
        middleware: str,
        after: bool = True,
    ) -> HttpKernel:
        anchors = [existing] if isinstance(existing, str) else list(existing)

        with self._lock:
            if middleware not in self._priority:
                positions = [self._priority.index(a) for a in anchors if a in self._priority]
                if after:
                    index = max(positions) + 1 if positions else len(self._priority)
                else:
                    index = min(positions) if positions else 0
                self._priority.insert(index, middleware)
            self._flush_cache()
        return self

    # ------------------------------------------------------------------

    def _flush_cache(self) -> None:
        self._cache = {}

    def flush_middleware_cache(self) -> None:
        with self._lock:
            self._flush_cache()


class InvalidMiddlewareExclusionError(Exception):
    """Raised when an excluded middleware carries parameters."""

    def __init__(self, middleware: str) -> None:
        self.middleware = middleware
        super().__init__(
            f"Middleware exclusion [{middleware}] must not have parameters; "
            "exclusions apply to every parameterization of a middleware."
        )


class UnknownMiddlewareGroupError(ValueError):
    """Raised when a mutator names a middleware group that was never defined."""
    pass
