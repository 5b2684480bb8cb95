"""
Middleware pipeline - runs a request through resolved middleware.

The kernel decides *which* middleware apply and in what order; the pipeline
makes each one through the container and nests the calls around the route
handler. Every middleware can run logic before and after ``next_fn`` or
short-circuit by returning without calling it.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from corewright.http.kernel import HttpKernel
from corewright.http.parsed_middleware import ParsedMiddleware
from corewright.http.route_middleware import Dispatched
from corewright.kernel.container import Container

logger = logging.getLogger(__name__)

# Calls the rest of the pipeline with the (possibly replaced) request
NextFunction = Callable[[Any], Awaitable[Any]]
Handler = Callable[[Any], Awaitable[Any]]
ErrorHandler = Callable[[Any, Exception], Awaitable[Any]]


class Middleware(ABC):
    """
    Base class for HTTP middleware.

    Descriptor parameters (``throttle:60,1``) arrive as extra positional
    string arguments.
    """

    @abstractmethod
    async def process(self, request: Any, next_fn: NextFunction, *parameters: str) -> Any:
        """
        Handle the request.

        Call ``await next_fn(request)`` to pass control to the next middleware;
        not calling it short-circuits the pipeline.
        """
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


class FunctionMiddleware(Middleware):
    """Create a middleware from a plain async function."""

    def __init__(
        self,
        handler: Callable[..., Awaitable[Any]],
        middleware_name: str = "FunctionMiddleware",
    ) -> None:
        self._handler = handler
        self._name = middleware_name

    async def process(self, request: Any, next_fn: NextFunction, *parameters: str) -> Any:
        return await self._handler(request, next_fn, *parameters)

    @property
    def name(self) -> str:
        return self._name


class MiddlewarePipeline:
    """Executes the middleware a kernel resolves for a request."""

    def __init__(self, container: Container, kernel: HttpKernel) -> None:
        self._container = container
        self._kernel = kernel
        self._error_handlers: list[ErrorHandler] = []

    def on_error(self, handler: ErrorHandler) -> MiddlewarePipeline:
        """
        Register an error handler.

        Handlers run in order; the first one returning something other than
        ``None`` provides the response. If none does, the error propagates.
        """
        self._error_handlers.append(handler)
        return self

    async def handle(self, request: Any, dispatched: Dispatched, handler: Handler) -> Any:
        """Send a request through its middleware and into the route handler."""
        resolved = self._kernel.get_middleware_for_request(dispatched)
        try:
            return await self.run(request, resolved, handler)
        except Exception as exc:
            for error_handler in self._error_handlers:
                response = await error_handler(request, exc)
                if response is not None:
                    return response
            raise

    async def run(
        self,
        request: Any,
        middlewares: tuple[ParsedMiddleware, ...] | list[ParsedMiddleware],
        handler: Handler,
    ) -> Any:
        """Run an explicit middleware sequence around a handler."""
        stages = [(self._make(parsed), parsed) for parsed in middlewares]

        async def call(index: int, current_request: Any) -> Any:
            if index >= len(stages):
                return await handler(current_request)

            middleware, parsed = stages[index]

            async def next_fn(next_request: Any) -> Any:
                return await call(index + 1, next_request)

            logger.debug("Entering middleware %s", parsed.signature)
            if isinstance(middleware, Middleware):
                result = middleware.process(current_request, next_fn, *parsed.parameters)
            else:
                result = middleware(current_request, next_fn, *parsed.parameters)
            if inspect.isawaitable(result):
                result = await result
            return result

        return await call(0, request)

    def _make(self, parsed: ParsedMiddleware) -> Any:
        middleware = self._container.make(parsed.name)
        if not isinstance(middleware, Middleware) and not callable(middleware):
            raise TypeError(f"Middleware [{parsed.name}] resolved to a non-callable {middleware!r}")
        return middleware
