"""
Registers the container aliases listed in ``app.aliases``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from corewright.foundation.application import Application

logger = logging.getLogger(__name__)


class RegisterAliases:
    """
    ``app.aliases`` maps an alias to the identity it stands for. Aliases that
    are already bound are left alone.
    """

    def bootstrap(self, app: Application) -> None:
        aliases: dict[str, str] = app.make("config").get("app.aliases", {})

        for alias, identity in aliases.items():
            if app.bound(alias):
                logger.debug("Alias %s already bound, skipped", alias)
                continue
            app.alias(identity, alias)
