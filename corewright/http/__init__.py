"""
HTTP module - middleware resolution, ordering and execution.
"""

from corewright.http.exceptions import HttpException, NotFoundHttpException
from corewright.http.kernel import (
    HttpKernel,
    InvalidMiddlewareExclusionError,
    UnknownMiddlewareGroupError,
)
from corewright.http.parsed_middleware import ParsedMiddleware
from corewright.http.pipeline import FunctionMiddleware, Middleware, MiddlewarePipeline
from corewright.http.route_middleware import Dispatched, RouteMiddlewareRegistry

__all__ = [
    "Dispatched",
    "FunctionMiddleware",
    "HttpException",
    "HttpKernel",
    "InvalidMiddlewareExclusionError",
    "Middleware",
    "MiddlewarePipeline",
    "NotFoundHttpException",
    "ParsedMiddleware",
    "RouteMiddlewareRegistry",
    "UnknownMiddlewareGroupError",
]
