"""
Foundation events.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LocaleUpdated:
    """Dispatched after the application locale changed."""

    locale: str
