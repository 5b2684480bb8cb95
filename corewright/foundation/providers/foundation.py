"""
Foundation service provider - wires the HTTP kernels and process settings.
"""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

from corewright.http.kernel import HttpKernel
from corewright.http.pipeline import MiddlewarePipeline
from corewright.http.route_middleware import RouteMiddlewareRegistry
from corewright.support.imports import import_class
from corewright.support.service_provider import ServiceProvider

if TYPE_CHECKING:
    from corewright.foundation.application import Application

logger = logging.getLogger(__name__)

ROUTE_MIDDLEWARE = "route.middleware"
ROUTE_EXCLUSIONS = "route.exclusions"


def kernel_identity(server: str) -> str:
    """Container identity of the HTTP kernel serving ``server``."""
    return f"http.kernel.{server}"


class FoundationServiceProvider(ServiceProvider):
    """
    Registers one HTTP kernel per entry of ``server.kernels``.

    Also copies the detected environment into ``app.env`` and ``app.debug``.
    Every kernel shares the route middleware and exclusion registries. Extra
    global middleware from ``middlewares.<server>`` is pushed onto the
    kernel, and the effective global stack is written back to that key.
    """

    singletons = {
        ROUTE_MIDDLEWARE: RouteMiddlewareRegistry,
        ROUTE_EXCLUSIONS: RouteMiddlewareRegistry,
    }

    def __init__(self, app: Application) -> None:
        super().__init__(app)
        self.config = app.make("config")

    def register(self) -> None:
        self._sync_environment_config()

        kernels: dict[str, str] = self.config.get("server.kernels", {})
        for server, kernel in kernels.items():
            self._register_kernel(server, kernel)

    def boot(self) -> None:
        self._set_default_timezone()

        for server in self.config.get("server.kernels", {}):
            kernel: HttpKernel = self.app.make(kernel_identity(server))
            for descriptor in self.config.get(f"middlewares.{server}", []):
                kernel.push_middleware(descriptor)
            self.config.set(f"middlewares.{server}", kernel.get_global_middleware())

    def _register_kernel(self, server: str, kernel: str | type) -> None:
        kernel_cls = import_class(kernel)
        if not issubclass(kernel_cls, HttpKernel):
            logger.warning("Kernel %s for server %s is not an HttpKernel, skipped", kernel, server)
            return

        def make_kernel(app) -> HttpKernel:
            return kernel_cls(
                server_name=server,
                route_middleware=app.make(ROUTE_MIDDLEWARE),
                route_exclusions=app.make(ROUTE_EXCLUSIONS),
            )

        def make_pipeline(app) -> MiddlewarePipeline:
            return MiddlewarePipeline(app, app.make(kernel_identity(server)))

        self.app.singleton(kernel_identity(server), make_kernel)
        self.app.singleton(f"http.pipeline.{server}", make_pipeline)
        logger.debug("Registered HTTP kernel %s for server %s", kernel_cls.__name__, server)

    def _sync_environment_config(self) -> None:
        """Make ``app.env`` and ``app.debug`` reflect the detected environment."""
        self.config.set(
            {
                "app.env": self.app.detect_environment(),
                "app.debug": self.app.has_debug_mode_enabled(),
            }
        )

    def _set_default_timezone(self) -> None:
        timezone = self.config.get("app.timezone", "UTC")
        os.environ["TZ"] = timezone
        if hasattr(time, "tzset"):
            time.tzset()
