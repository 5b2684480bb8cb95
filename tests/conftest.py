"""
pytest configuration and fixtures.
"""

import logging

import pytest

from corewright.foundation.application import Application
from corewright.foundation.environment import Environment
from corewright.http.kernel import HttpKernel
from corewright.http.route_middleware import RouteMiddlewareRegistry
from corewright.kernel.logging import ROOT_LOGGER


class FakeTranslator:
    """In-memory translator used for locale tests."""

    def __init__(self, locale: str = "en", fallback: str = "en") -> None:
        self.locale = locale
        self.fallback = fallback

    def get_locale(self) -> str:
        return self.locale

    def set_locale(self, locale: str) -> None:
        self.locale = locale

    def get_fallback(self) -> str:
        return self.fallback


class ExampleKernel(HttpKernel):
    """Kernel with a small but complete middleware setup."""

    middleware = ["TrimStrings", "ValidatePostSize"]
    middleware_groups = {
        "web": ["EncryptCookies", "StartSession", "csrf"],
        "api": ["throttle:60,1", "Bindings"],
    }
    middleware_aliases = {
        "auth": "Authenticate",
        "csrf": "VerifyCsrfToken",
        "throttle": "ThrottleRequests",
    }
    middleware_priority = ["StartSession", "Authenticate", "ThrottleRequests", "VerifyCsrfToken"]


@pytest.fixture
def app(tmp_path) -> Application:
    """Application rooted in a temporary directory, in the testing environment."""
    return Application(base_path=tmp_path, environment=Environment("testing", debug=False))


@pytest.fixture
def translator(app: Application) -> FakeTranslator:
    """Translator bound into the application."""
    return app.instance("translator", FakeTranslator("en", "en"))


@pytest.fixture
def route_middleware() -> RouteMiddlewareRegistry:
    return RouteMiddlewareRegistry()


@pytest.fixture
def route_exclusions() -> RouteMiddlewareRegistry:
    return RouteMiddlewareRegistry()


@pytest.fixture
def kernel(route_middleware: RouteMiddlewareRegistry, route_exclusions: RouteMiddlewareRegistry) -> HttpKernel:
    """Bare kernel with empty middleware tables."""
    return HttpKernel("http", route_middleware, route_exclusions)


@pytest.fixture
def example_kernel(
    route_middleware: RouteMiddlewareRegistry, route_exclusions: RouteMiddlewareRegistry
) -> ExampleKernel:
    return ExampleKernel("http", route_middleware, route_exclusions)


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove the handlers installed by ``setup_logging`` after each test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_corewright", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.NOTSET)
