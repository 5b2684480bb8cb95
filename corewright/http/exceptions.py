"""
HTTP exceptions raised by ``Application.abort``.
"""

from __future__ import annotations


class HttpException(Exception):
    """An exception that carries an HTTP status code and response headers."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.headers = headers or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"


class NotFoundHttpException(HttpException):
    """404 Not Found."""

    def __init__(self, message: str = "", headers: dict[str, str] | None = None) -> None:
        super().__init__(404, message, headers)
