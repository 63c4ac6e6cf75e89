"""
Lifecycle controller — start, stop and refresh a single bundle.

One controller backs one row of the module list. It owns the row's last
fetched ``BundleDetail`` and targets mutations exclusively by that
detail's ``bundle_id``.

Every attempted mutation is followed by a re-fetch of the detail, success
or not, so the row always shows what the registry reports rather than an
optimistic guess. Mutation failures are never retried: they are logged,
notified, and returned as a failed ``OperationResult``.

A per-bundle in-flight flag refuses a second operation on the same bundle
until the first one's re-fetch has completed. Operations on different
bundles are independent and may interleave freely.
"""

from __future__ import annotations

import asyncio
import logging
import time

from bundlectl.adapters.base import RegistryGateway
from bundlectl.core.errors import FetchError, MutationError, NotFoundError
from bundlectl.core.models.bundle import BundleDetail, BundleOperation, allowed_operations
from bundlectl.core.models.result import OperationResult
from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.core.services.notifications import STICKY, STICKY_ERROR, LogNotifier, Notifier, message

logger = logging.getLogger(__name__)

_SUCCESS_KEYS = {
    BundleOperation.START: "startBundleSuccess",
    BundleOperation.STOP: "stopBundleSuccess",
    BundleOperation.REFRESH: "refreshBundleSuccess",
}
_ERROR_KEYS = {
    BundleOperation.START: "startBundleError",
    BundleOperation.STOP: "stopBundleError",
    BundleOperation.REFRESH: "refreshBundleError",
}


class LifecycleController:
    """Lifecycle operations for the bundle listed under ``name``."""

    def __init__(
        self,
        gateway: RegistryGateway,
        name: str,
        *,
        notifier: Notifier | None = None,
        audit: AuditWriter | None = None,
    ):
        self._gateway = gateway
        self.name = name
        self._notifier = notifier or LogNotifier()
        self._audit = audit

        self.detail: BundleDetail | None = None
        self.error: str | None = None
        self.loaded = False
        self._in_flight = False

    # ── State ───────────────────────────────────────────────────

    @property
    def not_found(self) -> bool:
        """The last fetch succeeded but the registry has no such bundle."""
        return self.loaded and self.error is None and self.detail is None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def available_operations(self) -> frozenset[BundleOperation]:
        if self.detail is None:
            return frozenset()
        return allowed_operations(self.detail.state)

    # ── Fetch ───────────────────────────────────────────────────

    async def load(self) -> BundleDetail | None:
        """Fetch the bundle detail.

        Returns the detail, or ``None`` when the bundle is absent or the
        fetch failed (distinguish with ``not_found`` / ``error``). On a
        failed fetch the previously loaded detail is kept.
        """
        try:
            detail = await self._gateway.query_bundle_detail(self.name)
        except FetchError as e:
            logger.error("Error when fetching bundle %r: %s", self.name, e)
            self.error = str(e)
            self.loaded = True
            self._notifier.notify(message("loadingModuleData"), STICKY_ERROR)
            return None

        self.detail = detail
        self.error = None
        self.loaded = True
        return detail

    def require_detail(self) -> BundleDetail:
        """The loaded detail, or the reason there is none.

        Raises:
            FetchError: The last fetch failed.
            NotFoundError: The registry has no bundle under this name.
        """
        if self.error is not None:
            raise FetchError(self.error, operation="bundle", target=self.name)
        if self.detail is None:
            raise NotFoundError(f"Module not found: {self.name}", operation="bundle", target=self.name)
        return self.detail

    # ── Operations ──────────────────────────────────────────────

    async def start(self) -> OperationResult:
        return await self.run(BundleOperation.START)

    async def stop(self) -> OperationResult:
        return await self.run(BundleOperation.STOP)

    async def refresh(self) -> OperationResult:
        return await self.run(BundleOperation.REFRESH)

    def schedule(self, operation: BundleOperation) -> asyncio.Task[OperationResult]:
        """Run ``operation`` as a cancellable task on the running loop."""
        return asyncio.create_task(self.run(operation), name=f"{operation}:{self.name}")

    async def run(self, operation: BundleOperation) -> OperationResult:
        """Apply ``operation`` to the loaded bundle, then resynchronize.

        Never raises (task cancellation aside).
        """
        operation = BundleOperation(operation)
        detail = self.detail

        if detail is None:
            return OperationResult.skip(operation.value, reason=f"No bundle details loaded for {self.name}")
        target = str(detail.bundle_id)
        if operation not in allowed_operations(detail.state):
            return OperationResult.skip(
                operation.value, target, reason=f"'{operation}' is not available in state {detail.state or '(none)'}",
            )
        if self._in_flight:
            return OperationResult.skip(operation.value, target, reason="Another operation is in progress")

        self._in_flight = True
        start_time = time.monotonic()
        try:
            result = await self._mutate(operation, detail.bundle_id)
            result.resynced = await self._resync()
        finally:
            self._in_flight = False

        result.duration_ms = int((time.monotonic() - start_time) * 1000)
        if self._audit is not None:
            self._audit.record(result, module=self.name)
        return result

    async def _mutate(self, operation: BundleOperation, bundle_id: int) -> OperationResult:
        target = str(bundle_id)
        try:
            accepted = await self._gateway.mutate_bundle(bundle_id, operation)
            if not accepted:
                raise MutationError("Registry refused the operation", operation=operation.value, target=bundle_id)
        except Exception as e:
            logger.error("Error during %s of bundle %s (%s): %s", operation, bundle_id, self.name, e)
            self._notifier.notify(message(_ERROR_KEYS[operation]), STICKY_ERROR)
            return OperationResult.failure(operation.value, target, error=str(e) or e.__class__.__name__)

        logger.info("%s bundle %s (%s): ok", operation, bundle_id, self.name)
        self._notifier.notify(message(_SUCCESS_KEYS[operation]), STICKY)
        return OperationResult.success(operation.value, target, message=message(_SUCCESS_KEYS[operation]))

    async def _resync(self) -> bool:
        await self.load()
        return self.error is None
