"""
Default configuration - values every application starts from.
"""

from __future__ import annotations

from typing import Any


def build_default_config() -> dict[str, Any]:
    """Build the default configuration tree."""
    return {
        "app": {
            "name": "corewright",
            "env": "production",
            "debug": False,
            "timezone": "UTC",
            "locale": "en",
            "fallback_locale": "en",
            "log_level": "INFO",
            "log_file": None,
            # Service providers registered by RegisterProviders
            "providers": [],
            # Container aliases registered by RegisterAliases: alias -> identity
            "aliases": {},
            # Packages whose entry-point providers are skipped ("*" skips all)
            "dont_discover": [],
        },
        "server": {
            # server name -> dotted path of its HTTP kernel
            "kernels": {},
        },
        # server name -> extra global middleware descriptors
        "middlewares": {},
        "view": {
            "config": {
                "view_path": None,
            },
        },
    }
