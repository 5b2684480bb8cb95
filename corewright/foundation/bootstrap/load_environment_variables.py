"""
Loads ``.env`` from the base path into the process environment.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from corewright.foundation.dotenv import DotenvManager

if TYPE_CHECKING:
    from corewright.foundation.application import Application

logger = logging.getLogger(__name__)


class LoadEnvironmentVariables:
    def bootstrap(self, app: Application) -> None:
        if app.bound(DotenvManager):
            manager = app.make(DotenvManager)
        else:
            manager = app.instance(DotenvManager, DotenvManager())

        manager.load([app.base_path()])
