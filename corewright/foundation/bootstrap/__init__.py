"""
Bootstrappers run by ``Application.bootstrap_with``, in this order by default.
"""

from corewright.foundation.bootstrap.boot_providers import BootProviders
from corewright.foundation.bootstrap.configure_logging import ConfigureLogging
from corewright.foundation.bootstrap.load_environment_variables import LoadEnvironmentVariables
from corewright.foundation.bootstrap.register_aliases import RegisterAliases
from corewright.foundation.bootstrap.register_providers import RegisterProviders

DEFAULT_BOOTSTRAPPERS = [
    LoadEnvironmentVariables,
    ConfigureLogging,
    RegisterAliases,
    RegisterProviders,
    BootProviders,
]

__all__ = [
    "BootProviders",
    "ConfigureLogging",
    "DEFAULT_BOOTSTRAPPERS",
    "LoadEnvironmentVariables",
    "RegisterAliases",
    "RegisterProviders",
]
