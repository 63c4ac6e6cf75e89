"""
Installed-module inventory.

Fetches the installed descriptors, parses them on receipt and replaces
the view's module collection wholesale. Fetch failures propagate as
``FetchError``; the collection is left untouched in that case.
"""

from __future__ import annotations

import logging

from bundlectl.adapters.base import RegistryGateway
from bundlectl.core.models.bundle import ModuleRecord
from bundlectl.core.models.view import ViewState
from bundlectl.core.services.descriptor import parse_installed

logger = logging.getLogger(__name__)


class ModuleInventory:
    def __init__(self, gateway: RegistryGateway, state: ViewState):
        self._gateway = gateway
        self._state = state

    async def refresh(self) -> list[ModuleRecord]:
        """Re-fetch installed modules into the view state.

        Raises:
            FetchError: If the registry query fails.
        """
        descriptors = await self._gateway.query_installed_modules()
        modules = [parse_installed(d) for d in descriptors]
        self._state.set_modules(modules)
        logger.debug("Installed modules refreshed: %d", len(modules))
        return self._state.modules
