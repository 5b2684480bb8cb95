"""
Logging System - Centralized logging management.

Provides colored console logging and file logging with log rotation for the
``corewright`` logger hierarchy.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import colorlog

ROOT_LOGGER = "corewright"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s%(reset)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def setup_logging(
    level: int | str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """
    Configure the framework logger.

    Installs a colored console handler and, when ``log_file`` is given, a
    rotating file handler. Calling it again replaces the handlers it installed
    earlier instead of stacking duplicates.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_corewright", False):
            root.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
    )
    console_handler.setLevel(level)
    console_handler._corewright = True  # type: ignore[attr-defined]
    root.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        file_handler._corewright = True  # type: ignore[attr-defined]
        root.addHandler(file_handler)

    root.debug("Logging configured (level=%s, file=%s)", logging.getLevelName(level), log_file)
    return root


def set_level(level: int | str) -> None:
    """Set the level of the framework logger and its console handlers."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, RotatingFileHandler
        ):
            handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the framework logger."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
