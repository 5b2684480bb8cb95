"""
Config repository - reads and merges configuration.

Nested dictionaries addressed with dot-notation keys ("app.providers"),
optionally loaded from a JSON file with defaults merged underneath.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


class Repository:
    """
    Configuration center of the application.

    Supports:
    - nested key access ("web.port")
    - automatic default merging
    - loading from a JSON file
    """

    def __init__(
        self,
        items: dict[str, Any] | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self._items: dict[str, Any] = copy.deepcopy(items) if items else {}
        if defaults:
            self._merge_defaults(self._items, copy.deepcopy(defaults))

    @classmethod
    def from_file(cls, path: str, defaults: dict[str, Any] | None = None) -> Repository:
        """
        Load configuration from a JSON file.

        A missing file yields the defaults alone; an unreadable one is an error.
        """
        if not os.path.exists(path):
            logger.info("No config file at %s, using defaults", path)
            return cls(defaults=defaults)

        try:
            with open(path, encoding="utf-8") as f:
                items = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(f"Unable to load config file {path}: {e}") from e

        if not isinstance(items, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")

        logger.info("Config loaded from %s", path)
        return cls(items, defaults=defaults)

    def get(self, key: str | None = None, default: Any = None) -> Any:
        """Get a value (supports nested keys like "web.port")."""
        if key is None:
            return self._items
        value = self._lookup(key)
        return default if value is _MISSING else value

    def has(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING

    def _lookup(self, key: str) -> Any:
        if key in self._items:
            return self._items[key]

        current: Any = self._items
        for segment in key.split("."):
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            else:
                return _MISSING
        return current

    def set(self, key: str | dict[str, Any], value: Any = None) -> None:
        """Set a value (supports nested keys); a dict sets several keys."""
        pairs = key.items() if isinstance(key, dict) else [(key, value)]
        for name, item in pairs:
            segments = name.split(".")
            current = self._items
            for segment in segments[:-1]:
                if segment not in current or not isinstance(current[segment], dict):
                    current[segment] = {}
                current = current[segment]
            current[segments[-1]] = item

    def push(self, key: str, value: Any) -> None:
        """Append a value to a list option."""
        items = list(self.get(key, []))
        items.append(value)
        self.set(key, items)

    def all(self) -> dict[str, Any]:
        return self._items

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def _merge_defaults(self, config: dict[str, Any], defaults: dict[str, Any]) -> None:
        """Recursively merge defaults into config (does not overwrite existing)."""
        for key, default_value in defaults.items():
            if key not in config:
                config[key] = default_value
            elif isinstance(default_value, dict) and isinstance(config[key], dict):
                self._merge_defaults(config[key], default_value)


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded or is inconsistent."""
    pass
