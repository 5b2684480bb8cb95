"""
Configures the framework logger from ``app.log_level`` / ``app.log_file``.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from corewright.kernel.logging import setup_logging

if TYPE_CHECKING:
    from corewright.foundation.application import Application


class ConfigureLogging:
    def bootstrap(self, app: Application) -> None:
        config = app.make("config")
        level = config.get("app.log_level", "INFO")
        if app.has_debug_mode_enabled():
            level = "DEBUG"

        log_file = config.get("app.log_file")
        if log_file and not os.path.isabs(log_file):
            log_file = app.storage_path(log_file)

        setup_logging(level, log_file)
