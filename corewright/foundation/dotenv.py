"""
Dotenv manager - loads ``.env`` files into the process environment.

Reloading removes variables that disappeared from the files since the last
load, so a long-running server picks up deletions as well as changes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


class DotenvManager:
    """
    Tracks the values it loaded so a reload can undo removed entries.

    Only variables the manager wrote itself are ever unset; a variable the
    process already had is left alone even when its ``.env`` entry goes away.
    """

    def __init__(self) -> None:
        self._cached_values: dict[str, str] | None = None
        self._written: set[str] = set()

    @property
    def loaded(self) -> bool:
        return self._cached_values is not None

    def load(self, paths: list[str | Path], override: bool = False) -> dict[str, str]:
        """
        Load ``.env`` files once; later calls are no-ops.

        Existing process variables win unless ``override`` is set.
        """
        if self._cached_values is not None:
            return self._cached_values

        entries = self._read(paths)
        self._written = self._apply(entries, override)
        self._cached_values = entries
        logger.debug("Loaded %d environment variables", len(entries))
        return entries

    def reload(self, paths: list[str | Path], override: bool = True) -> dict[str, str]:
        """Reload the files, unsetting variables that are no longer defined."""
        if self._cached_values is None:
            return self.load(paths, override)

        entries = self._read(paths)
        for deleted in (set(self._cached_values) - set(entries)) & self._written:
            os.environ.pop(deleted, None)
            self._written.discard(deleted)

        self._written |= self._apply(entries, override)
        self._cached_values = entries
        logger.debug("Reloaded %d environment variables", len(entries))
        return entries

    def _read(self, paths: list[str | Path]) -> dict[str, str]:
        entries: dict[str, str] = {}
        for path in paths:
            path = Path(path)
            if path.is_dir():
                path = path / ".env"
            if not path.is_file():
                continue
            for key, value in dotenv_values(path).items():
                entries[key] = value if value is not None else ""
        return entries

    def _apply(self, entries: dict[str, str], override: bool) -> set[str]:
        written: set[str] = set()
        for key, value in entries.items():
            if override or key not in os.environ:
                os.environ[key] = value
                written.add(key)
        return written
