"""
Boots the registered service providers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from corewright.foundation.application import Application


class BootProviders:
    def bootstrap(self, app: Application) -> None:
        app.boot()
