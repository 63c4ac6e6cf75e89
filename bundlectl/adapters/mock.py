"""
Mock registry — in-memory test double for the registry gateway.

Used in mock mode (``bundlectl --mock``) and throughout the test suite to
simulate a live module registry without a server. Bundles carry ids,
versions and states; mutations move them the way the real registry
does. Any query or mutation can be configured to fail.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from bundlectl.adapters.base import AvailableUpdates, RegistryGateway
from bundlectl.core.errors import FetchError, MutationError
from bundlectl.core.models.bundle import BundleDetail, BundleOperation, BundleState

_TARGET_STATE: dict[BundleOperation, str | None] = {
    BundleOperation.START: BundleState.ACTIVE,
    BundleOperation.STOP: BundleState.RESOLVED,
    BundleOperation.REFRESH: None,  # state unchanged
}


@dataclass
class RegistryCall:
    """One recorded gateway call."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class MockRegistryGateway(RegistryGateway):
    """In-memory registry.

    Example:
        gateway = MockRegistryGateway()
        gateway.add_bundle("mod-b", "2.1", state="RESOLVED")
        await gateway.mutate_bundle(gateway.bundle_id("mod-b"), BundleOperation.START)
    """

    def __init__(self, gateway_name: str = "mock", last_update_time: Any = None):
        self._name = gateway_name
        self._bundles: dict[int, BundleDetail] = {}
        self._updates: dict[str, str] = {}       # name → available version
        self._next_id = 1
        self._last_update_time = last_update_time
        self._fetch_failures: dict[str, str] = {}
        self._mutation_failures: dict[tuple[str, int | None], str] = {}
        self._refusals: set[tuple[str, int | None]] = set()
        self._call_log: list[RegistryCall] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    # ── Seeding ─────────────────────────────────────────────────

    def add_bundle(
        self,
        name: str,
        version: str,
        state: str = BundleState.RESOLVED,
        *,
        bundle_id: int | None = None,
        **detail: Any,
    ) -> BundleDetail:
        """Install a bundle. Extra keyword arguments go to ``BundleDetail``."""
        if bundle_id is None:
            bundle_id = self._next_id
        self._next_id = max(self._next_id, bundle_id + 1)
        bundle = BundleDetail(
            bundle_id=bundle_id,
            symbolic_name=name,
            version=version,
            state=str(state),
            **detail,
        )
        self._bundles[bundle_id] = bundle
        return bundle

    def add_update(self, name: str, available_version: str) -> None:
        self._updates[name] = available_version

    def bundle_id(self, name: str) -> int:
        """Id of the first bundle installed under ``name``."""
        for bundle in self._bundles.values():
            if bundle.symbolic_name == name:
                return bundle.bundle_id
        raise KeyError(name)

    def bundle(self, bundle_id: int) -> BundleDetail:
        return self._bundles[bundle_id]

    @classmethod
    def demo(cls) -> MockRegistryGateway:
        """A small registry with a couple of bundles and one pending update."""
        gateway = cls(last_update_time="2024-01-01T00:00:00+00:00")
        gateway.add_bundle(
            "acme-core", "1.2.0", BundleState.ACTIVE,
            manifest=[{"key": "Bundle-Vendor", "value": "Acme"}],
            sites_deployment=["intranet"],
        )
        gateway.add_bundle("acme-forms", "3.0.1", BundleState.RESOLVED, dependencies=["acme-core"])
        gateway.add_bundle("acme-search", "2.4.0", BundleState.INSTALLED)
        gateway.add_update("acme-forms", "3.1.0")
        return gateway

    # ── Failure injection ───────────────────────────────────────

    def set_fetch_failure(self, method: str, error: str = "Mock fetch failure") -> None:
        """Make a query method (e.g. ``query_installed_modules``) raise FetchError."""
        self._fetch_failures[method] = error

    def clear_fetch_failure(self, method: str) -> None:
        self._fetch_failures.pop(method, None)

    def set_mutation_failure(
        self,
        operation: str,
        bundle_id: int | None = None,
        error: str = "Mock mutation failure",
    ) -> None:
        """Make a mutation raise MutationError.

        ``operation`` is a ``BundleOperation`` value or ``"update_all"``;
        ``bundle_id=None`` applies to every bundle.
        """
        self._mutation_failures[(str(operation), bundle_id)] = error

    def set_refusal(self, operation: str, bundle_id: int | None = None) -> None:
        """Make a lifecycle mutation return ``False`` instead of raising."""
        self._refusals.add((str(operation), bundle_id))

    # ── Call log ────────────────────────────────────────────────

    @property
    def call_log(self) -> list[RegistryCall]:
        return self._call_log

    def calls(self, method: str) -> list[RegistryCall]:
        return [c for c in self._call_log if c.method == method]

    def call_count(self, method: str | None = None) -> int:
        if method is None:
            return len(self._call_log)
        return len(self.calls(method))

    def reset(self) -> None:
        """Clear the call log and every configured failure."""
        self._call_log.clear()
        self._fetch_failures.clear()
        self._mutation_failures.clear()
        self._refusals.clear()

    def _record(self, method: str, **args: Any) -> None:
        self._call_log.append(RegistryCall(method=method, args=args))

    def _check_fetch(self, method: str) -> None:
        if method in self._fetch_failures:
            raise FetchError(self._fetch_failures[method], operation=method)

    def _check_mutation(self, operation: str, bundle_id: int | None) -> None:
        for key in ((operation, bundle_id), (operation, None)):
            if key in self._mutation_failures:
                raise MutationError(self._mutation_failures[key], operation=operation, target=bundle_id)

    # ── Queries ─────────────────────────────────────────────────

    async def query_installed_modules(self) -> list[str]:
        self._record("query_installed_modules")
        self._check_fetch("query_installed_modules")
        return [f"{b.symbolic_name}/{b.version}:{b.state}" for b in self._bundles.values()]

    async def query_available_updates(self) -> AvailableUpdates:
        self._record("query_available_updates")
        self._check_fetch("query_available_updates")
        installed = {b.symbolic_name: b.version for b in self._bundles.values()}
        return AvailableUpdates(
            updates=[f"{name}/{installed.get(name, '')}:{available}" for name, available in self._updates.items()],
            last_update_time=self._last_update_time,
        )

    async def query_bundle_detail(self, name: str) -> BundleDetail | None:
        self._record("query_bundle_detail", name=name)
        self._check_fetch("query_bundle_detail")
        for bundle in self._bundles.values():
            if bundle.symbolic_name == name:
                return bundle.model_copy(deep=True)
        return None

    # ── Mutations ───────────────────────────────────────────────

    async def mutate_bundle(self, bundle_id: int, operation: BundleOperation) -> bool:
        operation = BundleOperation(operation)
        self._record("mutate_bundle", bundle_id=bundle_id, operation=str(operation))
        self._check_mutation(str(operation), bundle_id)

        if bundle_id not in self._bundles:
            raise MutationError(f"No bundle with id {bundle_id}", operation=str(operation), target=bundle_id)
        if (str(operation), bundle_id) in self._refusals or (str(operation), None) in self._refusals:
            return False

        target = _TARGET_STATE[operation]
        if target is not None:
            self._bundles[bundle_id].state = target
        return True

    async def mutate_update_all_modules(
        self,
        *,
        platform_only: bool | None = None,
        filters: Sequence[str] | None = None,
    ) -> list[str]:
        self._record("mutate_update_all_modules", platform_only=platform_only, filters=list(filters or []))
        self._check_mutation("update_all", None)

        updated: list[str] = []
        for name, available in list(self._updates.items()):
            if filters and not any(f in name for f in filters):
                continue
            for bundle in self._bundles.values():
                if bundle.symbolic_name == name:
                    bundle.version = available
            del self._updates[name]
            updated.append(name)
        self._last_update_time = datetime.now(UTC).isoformat()
        return updated

    async def close(self) -> None:
        self.closed = True
