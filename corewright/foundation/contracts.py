"""
Contracts consumed by the foundation from collaborating packages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from corewright.foundation.application import Application


@runtime_checkable
class Bootstrapper(Protocol):
    """A step run by ``Application.bootstrap_with``."""

    def bootstrap(self, app: Application) -> None:
        ...


@runtime_checkable
class Translator(Protocol):
    """The slice of a translator the application uses for locale handling."""

    def get_locale(self) -> str:
        ...

    def set_locale(self, locale: str) -> None:
        ...

    def get_fallback(self) -> str:
        ...
