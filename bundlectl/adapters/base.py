"""
Registry gateway base — the contract between the core and the registry.

The core never talks to the module registry directly, only through this
interface. Implementations are transport-specific (GraphQL over HTTP,
in-memory mock); the core is transport-agnostic.

Every method is a coroutine: the caller's logical flow suspends until
the registry answers while the rest of the event loop keeps running.
Timeouts belong to the implementation; the core imposes none.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from bundlectl.core.models.bundle import BundleDetail, BundleOperation


class AvailableUpdates(BaseModel):
    """Raw answer of the available-updates query."""

    updates: list[str] = Field(default_factory=list)   # "<name>/<version>:<availableVersion>"
    last_update_time: Any = None                        # passed through untouched


class RegistryGateway(ABC):
    """Abstract base class for registry transports.

    Query failures raise ``FetchError``; mutation failures raise
    ``MutationError``. A bundle that does not exist is not a failure:
    ``query_bundle_detail`` returns ``None``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport identifier (e.g. 'graphql', 'mock')."""

    @abstractmethod
    async def query_installed_modules(self) -> list[str]:
        """Installed modules as ``<name>/<version>:<state>`` descriptors."""

    @abstractmethod
    async def query_available_updates(self) -> AvailableUpdates:
        """Pending updates plus the time the registry last looked for them."""

    @abstractmethod
    async def query_bundle_detail(self, name: str) -> BundleDetail | None:
        """Full detail of the bundle called ``name``, or ``None`` if absent."""

    @abstractmethod
    async def mutate_bundle(self, bundle_id: int, operation: BundleOperation) -> bool:
        """Apply a lifecycle operation to the bundle with id ``bundle_id``.

        Returns the registry's verdict; ``False`` is a refused operation.
        """

    @abstractmethod
    async def mutate_update_all_modules(
        self,
        *,
        platform_only: bool | None = None,
        filters: Sequence[str] | None = None,
    ) -> list[str]:
        """Apply every available update in one bulk mutation.

        With no arguments the registry's own defaults apply. Returns the
        names of the modules that were updated.
        """

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""

    async def __aenter__(self) -> RegistryGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
