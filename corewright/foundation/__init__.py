"""
Foundation module - the application, its bootstrappers and providers.
"""

from corewright.foundation.application import Application, NamespaceDetectionError
from corewright.foundation.dotenv import DotenvManager
from corewright.foundation.environment import Environment
from corewright.foundation.events import LocaleUpdated

__all__ = [
    "Application",
    "DotenvManager",
    "Environment",
    "LocaleUpdated",
    "NamespaceDetectionError",
]
