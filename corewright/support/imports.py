"""
Import helpers for classes named by dotted path.
"""

from __future__ import annotations

import importlib
from typing import Any


def import_class(target: type | str) -> type:
    """Import ``pkg.module.Class`` or ``pkg.module:Class``."""
    if isinstance(target, type):
        return target

    module_name, sep, attr = target.partition(":")
    if not sep:
        module_name, _, attr = target.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"[{target}] is not a dotted class path")

    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, type):
        raise ImportError(f"[{target}] does not name a class")
    return obj


def class_name(target: type | str) -> str:
    """Dotted name of a class, without importing when given a path."""
    if isinstance(target, str):
        return target.replace(":", ".")
    return f"{target.__module__}.{target.__qualname__}"
