"""
Update coordinator — available updates and the bulk "update all".

The installed list and the available-updates list are fetched
independently and reconciled only by re-fetching both after a bulk
update. There is no client-side merge.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from bundlectl.adapters.base import RegistryGateway
from bundlectl.core.errors import FetchError
from bundlectl.core.models.bundle import UpdateRecord
from bundlectl.core.models.result import OperationResult
from bundlectl.core.models.view import ViewState
from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.core.services.descriptor import parse_update
from bundlectl.core.services.inventory import ModuleInventory
from bundlectl.core.services.notifications import STICKY, STICKY_ERROR, LogNotifier, Notifier, message

logger = logging.getLogger(__name__)

UPDATE_ALL = "update_all"
CHECK_UPDATES = "check_updates"


class UpdateCoordinator:
    def __init__(
        self,
        gateway: RegistryGateway,
        state: ViewState,
        inventory: ModuleInventory,
        *,
        notifier: Notifier | None = None,
        audit: AuditWriter | None = None,
    ):
        self._gateway = gateway
        self._state = state
        self._inventory = inventory
        self._notifier = notifier or LogNotifier()
        self._audit = audit
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def can_update_all(self) -> bool:
        """The bulk update is only offered when there is something to apply."""
        return self._state.has_updates and not self._in_flight

    async def list_available_updates(self) -> list[UpdateRecord]:
        """Fetch and parse available updates into the view state.

        Raises:
            FetchError: If the registry query fails.
        """
        answer = await self._gateway.query_available_updates()
        updates = [parse_update(d) for d in answer.updates]
        self._state.set_updates(updates, answer.last_update_time)
        logger.debug("Available updates refreshed: %d", len(updates))
        return updates

    async def check_for_updates(self) -> OperationResult:
        """Operator-triggered refresh of the available-updates list."""
        self._notifier.notify(message("fetchUpdates"), STICKY)
        try:
            updates = await self.list_available_updates()
        except FetchError as e:
            logger.error("Error when fetching available updates: %s", e)
            self._state.error = str(e)
            self._notifier.notify(message("fetchUpdatesError"), STICKY_ERROR)
            return OperationResult.failure(CHECK_UPDATES, "all", error=str(e))
        return OperationResult.success(
            CHECK_UPDATES, "all", message=f"{len(updates)} update(s) available", resynced=True,
        )

    async def update_all(
        self,
        *,
        platform_only: bool | None = None,
        filters: Sequence[str] | None = None,
    ) -> OperationResult:
        """Apply every available update in one mutation, then re-fetch both lists.

        A no-op (skipped) when no update is available or a bulk update
        is already running. Never raises.
        """
        if not self._state.has_updates:
            return OperationResult.skip(UPDATE_ALL, "all", reason="No updates available")
        if self._in_flight:
            return OperationResult.skip(UPDATE_ALL, "all", reason="An update is already in progress")

        self._in_flight = True
        start_time = time.monotonic()
        try:
            try:
                updated = await self._gateway.mutate_update_all_modules(platform_only=platform_only, filters=filters)
            except Exception as e:
                logger.error("Error updating all modules: %s", e)
                self._notifier.notify(message("updateAllError"), STICKY_ERROR)
                result = OperationResult.failure(UPDATE_ALL, "all", error=str(e) or e.__class__.__name__)
            else:
                logger.info("Bulk update applied to %d module(s)", len(updated))
                self._notifier.notify(message("updateAllSuccess"), STICKY)
                result = OperationResult.success(
                    UPDATE_ALL, "all", message=message("updateAllSuccess"), metadata={"updated_modules": updated},
                )
            result.resynced = await self._resync()
        finally:
            self._in_flight = False

        result.duration_ms = int((time.monotonic() - start_time) * 1000)
        if self._audit is not None:
            self._audit.record(result)
        return result

    async def _resync(self) -> bool:
        """Re-fetch the installed modules, then the available updates."""
        ok = True
        try:
            await self._inventory.refresh()
        except FetchError as e:
            logger.error("Error re-fetching installed modules after update: %s", e)
            self._state.error = str(e)
            self._notifier.notify(message("loadingData"), STICKY_ERROR)
            ok = False
        try:
            await self.list_available_updates()
        except FetchError as e:
            logger.error("Error re-fetching available updates after update: %s", e)
            self._state.error = str(e)
            self._notifier.notify(message("fetchUpdatesError"), STICKY_ERROR)
            ok = False
        if ok:
            self._state.error = None
        return ok
