"""
Environment - the name of the running environment and the debug flag.
"""

from __future__ import annotations

import fnmatch
import os

TRUTHY = {"1", "true", "yes", "on"}


class Environment:
    """
    Reads ``APP_ENV`` and ``APP_DEBUG``, falling back to the given defaults.

    Environment names compare with shell-style patterns, so ``is_("local*")``
    matches both "local" and "local-docker".
    """

    def __init__(self, env: str | None = None, debug: bool | None = None) -> None:
        self._env = env
        self._debug = debug

    def get(self) -> str:
        if self._env is not None:
            return self._env
        return os.environ.get("APP_ENV", "production")

    def set(self, env: str) -> None:
        self._env = env

    def is_(self, *environments: str | list[str]) -> bool:
        current = self.get()
        patterns: list[str] = []
        for environment in environments:
            patterns.extend([environment] if isinstance(environment, str) else environment)
        return any(fnmatch.fnmatchcase(current, pattern) for pattern in patterns)

    def is_debug(self) -> bool:
        if self._debug is not None:
            return self._debug
        return os.environ.get("APP_DEBUG", "").strip().lower() in TRUTHY

    def set_debug(self, debug: bool) -> None:
        self._debug = debug
