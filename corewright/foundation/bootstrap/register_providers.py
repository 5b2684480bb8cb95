"""
Registers the configured and discovered service providers.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import TYPE_CHECKING

from corewright.foundation.providers.foundation import FoundationServiceProvider
from corewright.support.imports import class_name

if TYPE_CHECKING:
    from corewright.foundation.application import Application

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "corewright.providers"


class RegisterProviders:
    """
    Registers providers from two sources, discovered ones first:

    - entry points in the ``corewright.providers`` group of installed
      distributions, unless the distribution is listed in ``app.dont_discover``
      (``"*"`` disables discovery);
    - the ``app.providers`` config list.

    ``FoundationServiceProvider`` always registers first when present.
    """

    def bootstrap(self, app: Application) -> None:
        config = app.make("config")
        ignored: list[str] = list(config.get("app.dont_discover", []))

        providers = [] if "*" in ignored else self.discover_providers(ignored)
        providers.extend(config.get("app.providers", []))

        ordered: dict[str, type | str] = {}
        for provider in providers:
            ordered.setdefault(class_name(provider), provider)

        foundation_name = class_name(FoundationServiceProvider)
        if foundation_name in ordered:
            foundation = ordered.pop(foundation_name)
            ordered = {foundation_name: foundation, **ordered}

        for provider in ordered.values():
            app.register(provider)

        logger.info("Registered %d service providers", len(ordered))

    def discover_providers(self, ignored: list[str]) -> list[str]:
        discovered: list[str] = []
        for entry_point in entry_points(group=ENTRY_POINT_GROUP):
            distribution = entry_point.dist.name if entry_point.dist else ""
            if distribution in ignored:
                logger.debug("Skipping providers of %s", distribution)
                continue
            discovered.append(entry_point.value)
        return discovered
