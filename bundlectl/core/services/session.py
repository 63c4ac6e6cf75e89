"""
Module management session — one activation of the module screen.

Owns the view state and everything derived from it for as long as the
session is open, and discards it on close:

    async with ModuleManagementSession(gateway) as session:
        if await session.open():
            row = session.row("mod-b")
            await row.load()
            await row.start()
"""

from __future__ import annotations

import logging

from bundlectl.adapters.base import RegistryGateway
from bundlectl.core.errors import FetchError
from bundlectl.core.models.bundle import ModuleRecord
from bundlectl.core.models.view import ViewState
from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.core.services.inventory import ModuleInventory
from bundlectl.core.services.lifecycle import LifecycleController
from bundlectl.core.services.notifications import STICKY_ERROR, LogNotifier, Notifier, message
from bundlectl.core.services.sorting import SortOrder
from bundlectl.core.services.updates import UpdateCoordinator

logger = logging.getLogger(__name__)


class ModuleManagementSession:
    def __init__(
        self,
        gateway: RegistryGateway,
        *,
        notifier: Notifier | None = None,
        audit: AuditWriter | None = None,
        order_by: str = "name",
        order: SortOrder = "asc",
    ):
        self.gateway = gateway
        self.notifier = notifier or LogNotifier()
        self.audit = audit
        self.state = ViewState(order_by=order_by, order=order)
        self.inventory = ModuleInventory(gateway, self.state)
        self.updates = UpdateCoordinator(
            gateway, self.state, self.inventory, notifier=self.notifier, audit=audit,
        )
        self._rows: dict[str, LifecycleController] = {}

    async def open(self) -> bool:
        """Fetch installed modules and available updates.

        Returns False (with ``state.error`` set) if either fetch failed.
        """
        try:
            await self.inventory.refresh()
            await self.updates.list_available_updates()
        except FetchError as e:
            logger.error("Error when fetching data: %s", e)
            self.state.error = str(e)
            self.notifier.notify(message("loadingData"), STICKY_ERROR)
            return False
        self.state.error = None
        return True

    def visible_modules(self) -> list[ModuleRecord]:
        return self.state.visible_modules()

    def row(self, name: str) -> LifecycleController:
        """Controller for the row showing module ``name``; each row has its own detail."""
        if name not in self._rows:
            self._rows[name] = LifecycleController(
                self.gateway, name, notifier=self.notifier, audit=self.audit,
            )
        return self._rows[name]

    async def close(self) -> None:
        self.state.clear()
        self._rows.clear()
        await self.gateway.close()

    async def __aenter__(self) -> ModuleManagementSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
