"""
Service Container - Dependency Injection Container

Provides a centralized service container for managing application dependencies
using the inversion of control pattern.

Services are keyed by an identity, which is either a type or a plain string
("config", "events", ...). String aliases may point at any identity.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Hashable, TypeVar, get_type_hints

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceScope(Enum):
    """Defines the lifecycle scope of a registered service."""

    SINGLETON = auto()  # Single instance throughout application lifetime
    TRANSIENT = auto()  # New instance on every resolution


@dataclass
class ServiceDescriptor:
    """Describes a registered service in the container."""

    identity: Hashable
    concrete: type | Callable[..., Any] | None = None
    scope: ServiceScope = ServiceScope.TRANSIENT
    after_resolving: list[Callable[..., Any]] = field(default_factory=list)


class Container:
    """
    Dependency injection container for managing service registration and resolution.

    Supports constructor injection with automatic dependency resolution, driven
    by parameter annotations. A ``Container`` is synchronous: resolution never
    suspends, so it can be used both during startup and from request handlers.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Hashable, ServiceDescriptor] = {}
        self._instances: dict[Hashable, Any] = {}
        self._aliases: dict[Hashable, Hashable] = {}
        self._resolving_callbacks: dict[Hashable, list[Callable[..., Any]]] = {}
        self._lock = threading.RLock()

    def bind(
        self,
        identity: Hashable,
        concrete: type | Callable[..., Any] | None = None,
        shared: bool = False,
    ) -> Container:
        """Register a binding; ``concrete`` defaults to the identity itself."""
        identity = self.get_alias(identity)
        with self._lock:
            self._instances.pop(identity, None)
            self._descriptors[identity] = ServiceDescriptor(
                identity=identity,
                concrete=concrete if concrete is not None else identity,
                scope=ServiceScope.SINGLETON if shared else ServiceScope.TRANSIENT,
            )
        logger.debug("Bound %s (shared=%s)", _describe(identity), shared)
        return self

    def singleton(
        self,
        identity: Hashable,
        concrete: type | Callable[..., Any] | None = None,
    ) -> Container:
        """Register a shared binding (one instance per container)."""
        return self.bind(identity, concrete, shared=True)

    def instance(self, identity: Hashable, value: T) -> T:
        """Register a pre-created instance as a singleton."""
        identity = self.get_alias(identity)
        with self._lock:
            self._descriptors.setdefault(
                identity,
                ServiceDescriptor(identity=identity, scope=ServiceScope.SINGLETON),
            )
            self._instances[identity] = value
        return value

    def alias(self, identity: Hashable, alias: Hashable) -> None:
        """Make ``alias`` resolve to ``identity``."""
        if alias == identity:
            raise ValueError(f"[{_describe(identity)}] is aliased to itself.")
        self._aliases[alias] = identity

    def get_alias(self, identity: Hashable) -> Hashable:
        """Follow the alias chain to the concrete identity."""
        seen: set[Hashable] = set()
        while identity in self._aliases and identity not in seen:
            seen.add(identity)
            identity = self._aliases[identity]
        return identity

    def is_alias(self, name: Hashable) -> bool:
        return name in self._aliases

    def bound(self, identity: Hashable) -> bool:
        """Check if an identity has a binding, instance or alias."""
        resolved = self.get_alias(identity)
        return (
            resolved in self._descriptors
            or resolved in self._instances
            or identity in self._aliases
        )

    has = bound

    def resolved(self, identity: Hashable) -> bool:
        return self.get_alias(identity) in self._instances

    def get(self, identity: Hashable) -> Any:
        """Resolve a service; unknown string identities are an error."""
        return self.make(identity)

    def make(self, identity: Hashable, parameters: dict[str, Any] | None = None) -> Any:
        """Resolve a service by its identity with automatic dependency injection."""
        with self._lock:
            return self._resolve(identity, parameters or {})

    def _resolve(self, identity: Hashable, parameters: dict[str, Any]) -> Any:
        identity = self.get_alias(identity)

        # Return cached singleton if available
        if identity in self._instances and not parameters:
            return self._instances[identity]

        descriptor = self._descriptors.get(identity)
        if descriptor is None:
            if isinstance(identity, type):
                instance = self._build(identity, parameters)
                self._fire_resolving(identity, instance)
                return instance
            raise ServiceNotFoundError(f"Service {_describe(identity)} not registered")

        concrete = descriptor.concrete
        if concrete is None:
            raise ServiceResolutionError(
                f"Cannot resolve service {_describe(identity)}: no implementation found"
            )

        if isinstance(concrete, type):
            instance = self._build(concrete, parameters)
        elif isinstance(concrete, str) and concrete != identity:
            instance = self._resolve(concrete, parameters)
        elif callable(concrete):
            instance = self._invoke_factory(concrete, parameters)
        else:
            raise ServiceResolutionError(
                f"Cannot resolve service {_describe(identity)}: {concrete!r} is not buildable"
            )

        if descriptor.scope == ServiceScope.SINGLETON and not parameters:
            self._instances[identity] = instance

        self._fire_resolving(identity, instance)
        return instance

    def _build(self, implementation: type[T], parameters: dict[str, Any]) -> T:
        """Create an instance of the implementation with injected dependencies."""
        if implementation.__init__ is object.__init__:
            return implementation()
        resolved_args = self._resolve_arguments(
            implementation.__init__, parameters, skip_first=True
        )
        return implementation(**resolved_args)

    def _invoke_factory(self, factory: Callable[..., T], parameters: dict[str, Any]) -> T:
        """Invoke a factory; an unannotated first parameter receives the container."""
        params = list(inspect.signature(factory).parameters.values())
        if (
            params
            and params[0].name not in parameters
            and params[0].annotation is inspect.Parameter.empty
            and params[0].kind in (params[0].POSITIONAL_ONLY, params[0].POSITIONAL_OR_KEYWORD)
        ):
            parameters = {params[0].name: self, **parameters}
        return self._call(factory, parameters)

    def call(
        self,
        callback: Callable[..., T],
        parameters: dict[str, Any] | None = None,
    ) -> T:
        """Invoke a callable, injecting annotated parameters from the container."""
        with self._lock:
            return self._call(callback, parameters or {})

    def _call(self, callback: Callable[..., T], parameters: dict[str, Any]) -> T:
        resolved_args = self._resolve_arguments(callback, parameters)
        return callback(**resolved_args)

    def _resolve_arguments(
        self,
        func: Callable[..., Any],
        parameters: dict[str, Any],
        skip_first: bool = False,
    ) -> dict[str, Any]:
        signature = inspect.signature(func)
        try:
            hints = get_type_hints(func) if hasattr(func, "__annotations__") else {}
        except NameError:
            hints = _resolvable_hints(func)

        resolved_args: dict[str, Any] = {}
        for index, (name, param) in enumerate(signature.parameters.items()):
            if skip_first and index == 0:
                continue
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            if name in parameters:
                resolved_args[name] = parameters[name]
                continue

            param_type = hints.get(name, param.annotation)
            if isinstance(param_type, str):
                # Unresolvable forward reference
                param_type = inspect.Parameter.empty
            if param_type is not inspect.Parameter.empty and self._can_inject(param_type):
                resolved_args[name] = self._resolve(param_type, {})
            elif param.default is not inspect.Parameter.empty:
                resolved_args[name] = param.default
            else:
                raise ServiceResolutionError(
                    f"Cannot resolve parameter '{name}' of {getattr(func, '__qualname__', func)}"
                )
        return resolved_args

    def _can_inject(self, param_type: Any) -> bool:
        # Skip generics like Optional, list[...], etc.
        if getattr(param_type, "__origin__", None) is not None:
            return False
        if self.bound(param_type):
            return True
        return (
            isinstance(param_type, type)
            and param_type.__module__ not in ("builtins", "typing")
            and not inspect.isabstract(param_type)
        )

    def after_resolving(
        self, identity: Hashable, callback: Callable[[Any, Container], None]
    ) -> None:
        """Run ``callback(instance, container)`` every time the identity resolves."""
        identity = self.get_alias(identity)
        self._resolving_callbacks.setdefault(identity, []).append(callback)

    def _fire_resolving(self, identity: Hashable, instance: Any) -> None:
        for callback in self._resolving_callbacks.get(identity, []):
            callback(instance, self)

    def forget_instance(self, identity: Hashable) -> None:
        self._instances.pop(self.get_alias(identity), None)

    def flush(self) -> None:
        """Drop every binding, instance and alias."""
        with self._lock:
            self._descriptors.clear()
            self._instances.clear()
            self._aliases.clear()
            self._resolving_callbacks.clear()

    def __getitem__(self, identity: Hashable) -> Any:
        return self.make(identity)

    def __contains__(self, identity: Hashable) -> bool:
        return self.bound(identity)


def _resolvable_hints(func: Callable[..., Any]) -> dict[str, Any]:
    """Evaluate annotations one by one, skipping unresolvable forward references."""
    target = inspect.unwrap(func)
    target = getattr(target, "__func__", target)
    globalns = getattr(target, "__globals__", {})

    hints: dict[str, Any] = {}
    for name, annotation in getattr(target, "__annotations__", {}).items():
        def holder() -> None:
            pass

        holder.__annotations__ = {name: annotation}
        try:
            hints.update(get_type_hints(holder, globalns=globalns))
        except NameError:
            logger.debug("Unresolvable annotation %r for %s", annotation, name)
    return hints


def _describe(identity: Hashable) -> str:
    if isinstance(identity, type):
        return f"{identity.__module__}.{identity.__qualname__}"
    return str(identity)


class ServiceNotFoundError(KeyError):
    """Raised when a requested service is not registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ServiceResolutionError(Exception):
    """Raised when a service cannot be resolved due to dependency issues."""
    pass
