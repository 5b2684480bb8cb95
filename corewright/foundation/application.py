"""
Application - the container, provider registry and lifecycle in one object.

The application follows a two-phase initialization pattern:
1. Register: every service provider's ``register()`` binds its services
2. Boot: booting callbacks, every provider's ``boot()``, booted callbacks

Example:
    app = Application(base_path="/srv/project")
    app.register(RoutingServiceProvider)
    app.boot()
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from collections.abc import Callable, Iterable
from typing import Any

from corewright import __version__
from corewright.config.defaults import build_default_config
from corewright.config.repository import Repository
from corewright.foundation.contracts import Bootstrapper, Translator
from corewright.foundation.environment import Environment
from corewright.foundation.events import LocaleUpdated
from corewright.http.exceptions import HttpException, NotFoundHttpException
from corewright.kernel.container import Container
from corewright.kernel.events import EventDispatcher
from corewright.kernel.logging import ROOT_LOGGER
from corewright.support.imports import class_name, import_class
from corewright.support.service_provider import ServiceProvider

logger = logging.getLogger(__name__)

AppCallback = Callable[["Application"], Any]


class Application(Container):
    """
    Central application object.

    Owns the service providers: each provider class registers at most once
    (unless forced) and boots exactly once, either in the global boot pass or
    immediately when it registers after the application booted.
    """

    VERSION = __version__

    def __init__(
        self,
        base_path: str | os.PathLike[str] | None = None,
        config: Repository | None = None,
        events: EventDispatcher | None = None,
        environment: Environment | None = None,
    ) -> None:
        super().__init__()
        self.set_base_path(base_path if base_path is not None else os.getcwd())

        self._has_been_bootstrapped = False
        self._booted = False
        self._booting = False
        self._booting_callbacks: list[AppCallback] = []
        self._booted_callbacks: list[AppCallback] = []
        self._service_providers: dict[type[ServiceProvider], ServiceProvider] = {}
        self._loaded_providers: dict[str, bool] = {}
        self._namespace: str | None = None
        self._boot_lock = threading.RLock()

        self._register_base_bindings(config, events, environment)
        self._register_core_container_aliases()

    def version(self) -> str:
        return self.VERSION

    def _register_base_bindings(
        self,
        config: Repository | None,
        events: EventDispatcher | None,
        environment: Environment | None,
    ) -> None:
        """Register the basic bindings into the container."""
        self.instance(Application, self)
        if type(self) is not Application:
            self.alias(Application, type(self))
        self.alias(Application, Container)

        self.instance(Repository, config or Repository(defaults=build_default_config()))
        self.instance(EventDispatcher, events or EventDispatcher())
        self.instance(Environment, environment or Environment())
        self.instance("log", logging.getLogger(ROOT_LOGGER))

    def _register_core_container_aliases(self) -> None:
        """Register the short names of the core services."""
        for identity, aliases in {
            Application: ["app"],
            Repository: ["config"],
            EventDispatcher: ["events"],
            Environment: ["env"],
        }.items():
            for alias in aliases:
                self.alias(identity, alias)

    # ------------------------------------------------------------------
    # Bootstrapping
    # ------------------------------------------------------------------

    def bootstrap_with(self, bootstrappers: Iterable[type | str]) -> None:
        """
        Run the given bootstrap classes in order.

        Each one is announced with ``bootstrapping: <name>`` before and
        ``bootstrapped: <name>`` after it runs.
        """
        self._has_been_bootstrapped = True
        events: EventDispatcher = self.make("events")

        for bootstrapper in bootstrappers:
            bootstrapper_cls = import_class(bootstrapper)
            name = class_name(bootstrapper_cls)

            events.dispatch(f"bootstrapping: {name}", [self])
            logger.debug("Bootstrapping %s", name)

            instance = self.make(bootstrapper_cls)
            if not isinstance(instance, Bootstrapper):
                raise TypeError(f"[{name}] does not define bootstrap(app)")
            instance.bootstrap(self)

            events.dispatch(f"bootstrapped: {name}", [self])

    def before_bootstrapping(self, bootstrapper: type | str, callback: AppCallback) -> None:
        """Register a callback to run before a bootstrapper."""
        name = class_name(import_class(bootstrapper))
        self.make("events").listen(f"bootstrapping: {name}", callback)

    def after_bootstrapping(self, bootstrapper: type | str, callback: AppCallback) -> None:
        """Register a callback to run after a bootstrapper."""
        name = class_name(import_class(bootstrapper))
        self.make("events").listen(f"bootstrapped: {name}", callback)

    def has_been_bootstrapped(self) -> bool:
        return self._has_been_bootstrapped

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def set_base_path(self, base_path: str | os.PathLike[str]) -> Application:
        self._base_path = os.fspath(base_path).rstrip("\\/") or os.sep
        return self

    def base_path(self, path: str = "") -> str:
        """Get the base path of the installation."""
        return self.join_paths(self._base_path, path)

    def path(self, path: str = "") -> str:
        """Get the path to the application "app" directory."""
        return self.join_paths(self.base_path("app"), path)

    def config_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("config"), path)

    def database_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("database"), path)

    def lang_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("lang"), path)

    def public_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("public"), path)

    def resource_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("resources"), path)

    def storage_path(self, path: str = "") -> str:
        return self.join_paths(self.base_path("storage"), path)

    def view_path(self, path: str = "") -> str:
        """Get the views directory; ``view.config.view_path`` overrides the default."""
        configured = self.make("config").get("view.config.view_path")
        view_path = (configured or self.base_path("resources/views")).rstrip("\\/")
        return self.join_paths(view_path, path)

    @staticmethod
    def join_paths(base_path: str, path: str = "") -> str:
        if not path:
            return base_path
        return os.path.join(base_path, path.lstrip("\\/"))

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    def environment(self, *environments: str | list[str]) -> str | bool:
        """Get the current environment, or check it against the given patterns."""
        if environments:
            return self.make(Environment).is_(*environments)
        return self.detect_environment()

    def detect_environment(self) -> str:
        return self.make(Environment).get()

    def is_local(self) -> bool:
        return self.make(Environment).is_("local")

    def is_production(self) -> bool:
        return self.make(Environment).is_("production")

    def running_unit_tests(self) -> bool:
        return self.make(Environment).is_("testing")

    def has_debug_mode_enabled(self) -> bool:
        return self.make(Environment).is_debug()

    # ------------------------------------------------------------------
    # Service providers
    # ------------------------------------------------------------------

    def register(
        self,
        provider: ServiceProvider | type[ServiceProvider] | str,
        force: bool = False,
    ) -> ServiceProvider:
        """
        Register a service provider with the application.

        Args:
            provider: Provider instance, class, or dotted path to a class
            force: Register a fresh instance even if the class is registered

        Returns:
            The registered provider, or the already tracked one when not forced.
        """
        registered = self.get_provider(provider)
        if registered is not None and not force:
            return registered

        if not isinstance(provider, ServiceProvider):
            provider = self.resolve_provider(provider)

        provider.register()

        for identity, concrete in provider.bindings.items():
            self.bind(identity, concrete)
        for identity, concrete in provider.singletons.items():
            self.singleton(identity, concrete)

        # Only reached when register() returned, so a failed provider can retry
        self._mark_as_registered(provider)
        logger.debug("Registered provider %s", provider.name)

        if self.is_booted():
            self.boot_provider(provider)

        return provider

    def get_provider(
        self, provider: ServiceProvider | type[ServiceProvider] | str
    ) -> ServiceProvider | None:
        """
        Get the registered instance of a provider class, if any.

        A dotted path is matched by name against the registered providers
        and is never imported.
        """
        if isinstance(provider, str):
            name = class_name(provider)
            for registered in self._service_providers.values():
                if registered.name == name:
                    return registered
            return None
        return self._service_providers.get(_provider_class(provider))

    def get_providers(
        self, provider: ServiceProvider | type[ServiceProvider] | str
    ) -> list[ServiceProvider]:
        """Get every registered provider that is an instance of the given class."""
        if isinstance(provider, str):
            name = class_name(provider)
            return [
                p
                for p in self._service_providers.values()
                if any(class_name(cls) == name for cls in type(p).__mro__)
            ]
        provider_cls = _provider_class(provider)
        return [p for p in self._service_providers.values() if isinstance(p, provider_cls)]

    def resolve_provider(self, provider: type[ServiceProvider] | str) -> ServiceProvider:
        """Create a provider instance, passing in the application."""
        return _provider_class(provider)(self)

    def _mark_as_registered(self, provider: ServiceProvider) -> None:
        self._service_providers[type(provider)] = provider
        self._loaded_providers[provider.name] = True

    def get_loaded_providers(self) -> dict[str, bool]:
        return dict(self._loaded_providers)

    def provider_is_loaded(self, provider: type[ServiceProvider] | str) -> bool:
        return class_name(provider) in self._loaded_providers

    # ------------------------------------------------------------------
    # Boot
    # ------------------------------------------------------------------

    def is_booted(self) -> bool:
        return self._booted

    def boot(self) -> None:
        """Boot the application's service providers."""
        with self._boot_lock:
            if self._booted or self._booting:
                return
            self._booting = True

            try:
                self._fire_app_callbacks(self._booting_callbacks)

                # Providers registered while booting still boot in this pass
                pending = self._pending_providers()
                while pending:
                    for provider in pending:
                        self.boot_provider(provider)
                    pending = self._pending_providers()

                self._booted = True
            finally:
                self._booting = False

        logger.info("Application booted with %d providers", len(self._service_providers))
        self._fire_app_callbacks(self._booted_callbacks)

    def _pending_providers(self) -> list[ServiceProvider]:
        return [p for p in self._service_providers.values() if not p.is_booted]

    def boot_provider(self, provider: ServiceProvider) -> None:
        """Boot a single provider: its booting hooks, ``boot()``, its booted hooks."""
        if provider.is_booted:
            return

        provider.call_booting_callbacks()

        boot = getattr(provider, "boot", None)
        if callable(boot):
            self.call(boot)

        provider.mark_booted()
        provider.call_booted_callbacks()
        logger.debug("Booted provider %s", provider.name)

    def booting(self, callback: AppCallback) -> None:
        """Register a callback to run before providers boot."""
        self._booting_callbacks.append(callback)

    def booted(self, callback: AppCallback) -> None:
        """Register a callback to run after boot; runs now if already booted."""
        if self.is_booted():
            callback(self)
            return

        self._booted_callbacks.append(callback)

    def _fire_app_callbacks(self, callbacks: list[AppCallback]) -> None:
        # Callbacks may add callbacks; the length is re-read on every step
        index = 0
        while index < len(callbacks):
            callbacks[index](self)
            index += 1

    # ------------------------------------------------------------------
    # Locale
    # ------------------------------------------------------------------

    def translator(self) -> Translator:
        """Get the bound translator."""
        translator = self.make("translator")
        if not isinstance(translator, Translator):
            raise TypeError(f"Bound translator {translator!r} does not implement the translator contract")
        return translator

    def get_locale(self) -> str:
        return self.translator().get_locale()

    def current_locale(self) -> str:
        return self.get_locale()

    def is_locale(self, locale: str) -> bool:
        return self.get_locale() == locale

    def get_fallback_locale(self) -> str:
        return self.translator().get_fallback()

    def set_locale(self, locale: str) -> None:
        self.translator().set_locale(locale)
        self.make("events").dispatch(LocaleUpdated(locale))

    # ------------------------------------------------------------------

    def abort(self, code: int, message: str = "", headers: dict[str, str] | None = None) -> None:
        """Raise an HTTP exception with the given data."""
        if code == 404:
            raise NotFoundHttpException(message, headers)
        raise HttpException(code, message, headers)

    def get_namespace(self) -> str:
        """
        Get the package name of the application directory.

        Read from ``tool.setuptools.package-dir`` in the project's
        ``pyproject.toml``: the package whose directory is ``path()``.

        Raises:
            NamespaceDetectionError: No package maps to the application directory.
        """
        if self._namespace is not None:
            return self._namespace

        pyproject = self.base_path("pyproject.toml")
        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise NamespaceDetectionError("Unable to detect application namespace.") from e

        package_dirs = data.get("tool", {}).get("setuptools", {}).get("package-dir", {})
        app_path = os.path.realpath(self.path())

        for namespace, paths in package_dirs.items():
            for path in [paths] if isinstance(paths, str) else paths:
                if os.path.realpath(self.base_path(path)) == app_path:
                    self._namespace = namespace
                    return namespace

        raise NamespaceDetectionError("Unable to detect application namespace.")


def _provider_class(
    provider: ServiceProvider | type[ServiceProvider] | str,
) -> type[ServiceProvider]:
    if isinstance(provider, ServiceProvider):
        return type(provider)
    return import_class(provider)


class NamespaceDetectionError(RuntimeError):
    """Raised when the application namespace cannot be inferred."""
    pass
