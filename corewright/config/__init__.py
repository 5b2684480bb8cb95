"""
Configuration module - dot-notation config repository and defaults.
"""

from corewright.config.defaults import build_default_config
from corewright.config.repository import ConfigurationError, Repository

__all__ = ["ConfigurationError", "Repository", "build_default_config"]
