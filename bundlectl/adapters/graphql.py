"""
GraphQL registry gateway — talks to the registry's admin GraphQL API.

Every call is a single POST of ``{"query": ..., "variables": ...}`` to
``<url><endpoint>``. The registry nests everything under
``data.admin.modulesManagement``; anything else is a malformed envelope.

Failure mapping:
    queries    → FetchError     (HTTP error, bad JSON, GraphQL errors, bad envelope)
    mutations  → MutationError  (same causes)
    unknown bundle name → ``None`` (not an error)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import aiohttp
from pydantic import ValidationError

from bundlectl.adapters.base import AvailableUpdates, RegistryGateway
from bundlectl.core.errors import FetchError, MutationError, RegistryError
from bundlectl.core.models.bundle import BundleDetail, BundleOperation

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "/modules/graphql"

INSTALLED_MODULES_QUERY = """
query {
    admin {
        modulesManagement {
            installedModules
        }
    }
}
"""

AVAILABLE_UPDATES_QUERY = """
query {
    admin {
        modulesManagement {
            availableUpdates
            lastUpdateTime
        }
    }
}
"""

BUNDLE_DETAIL_QUERY = """
query ($module: String!, $depth: Int) {
    admin {
        modulesManagement {
            bundle(name: $module) {
                symbolicName
                bundleId
                state
                version
                manifest {
                    key
                    value
                }
                dependencies
                dependenciesGraph(depth: $depth)
                moduleDependencies
                moduleDependenciesGraph
                nodeTypesDependencies
                license
                services
                servicesInUse
                sitesDeployment
            }
        }
    }
}
"""

# One document per operation; the operation name doubles as the result field.
_BUNDLE_MUTATION_TEMPLATE = """
mutation ($bundleId: Long!) {
    admin {
        modulesManagement {
            bundle(bundleId: $bundleId) {
                %s
            }
        }
    }
}
"""

BUNDLE_MUTATIONS: dict[BundleOperation, str] = {
    op: _BUNDLE_MUTATION_TEMPLATE % op.value for op in BundleOperation
}

UPDATE_ALL_MUTATION = """
mutation {
    admin {
        modulesManagement {
            updateModules
        }
    }
}
"""

UPDATE_ALL_MUTATION_WITH_ARGS = """
mutation ($jahiaOnly: Boolean, $filters: [String]) {
    admin {
        modulesManagement {
            updateModules(jahiaOnly: $jahiaOnly, filters: $filters)
        }
    }
}
"""


def unwrap_envelope(
    payload: Any,
    *,
    operation: str,
    error_cls: type[RegistryError] = FetchError,
    target: Any = None,
) -> dict[str, Any]:
    """Return the ``modulesManagement`` object of a GraphQL response.

    Raises ``error_cls`` if the response carries GraphQL errors or does
    not have the expected shape.
    """
    if not isinstance(payload, dict):
        raise error_cls(f"Expected a JSON object, got {type(payload).__name__}", operation=operation, target=target)

    errors = payload.get("errors")
    if errors:
        messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors]
        raise error_cls("; ".join(messages), operation=operation, target=target)

    node: Any = payload.get("data")
    for key in ("admin", "modulesManagement"):
        if not isinstance(node, dict) or not isinstance(node.get(key), dict):
            raise error_cls(f"Malformed response: missing '{key}'", operation=operation, target=target)
        node = node[key]
    return node


class GraphQLRegistryGateway(RegistryGateway):
    """Registry gateway over the admin GraphQL endpoint, using aiohttp.

    The gateway creates (and later closes) its own ``ClientSession``
    unless one is passed in, in which case the caller owns it.

    Example:
        async with GraphQLRegistryGateway("http://localhost:8080", username="root", password="root") as gw:
            descriptors = await gw.query_installed_modules()
    """

    def __init__(
        self,
        base_url: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        graph_depth: int = 2,
        session: aiohttp.ClientSession | None = None,
    ):
        self._url = base_url.rstrip("/") + "/" + endpoint.lstrip("/")
        self._auth = aiohttp.BasicAuth(username, password or "") if username else None
        self._headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._verify_ssl = verify_ssl
        self._graph_depth = graph_depth
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return "graphql"

    @property
    def url(self) -> str:
        return self._url

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                auth=self._auth,
                headers=self._headers,
                timeout=self._timeout,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ── Transport ───────────────────────────────────────────────

    async def _execute(
        self,
        query: str,
        variables: dict[str, Any] | None,
        *,
        operation: str,
        error_cls: type[RegistryError],
        target: Any = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        logger.debug("POST %s (%s)", self._url, operation)
        session = self._get_session()
        try:
            async with session.post(self._url, json=body, ssl=self._verify_ssl) as response:
                if response.status != 200:
                    text = await response.text()
                    raise error_cls(
                        f"HTTP {response.status}: {text[:200]}",
                        operation=operation,
                        target=target,
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise error_cls(f"Invalid JSON response: {e}", operation=operation, target=target) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error_cls(f"Registry unreachable: {str(e) or e.__class__.__name__}", operation=operation, target=target) from e

        return unwrap_envelope(payload, operation=operation, error_cls=error_cls, target=target)

    # ── Queries ─────────────────────────────────────────────────

    async def query_installed_modules(self) -> list[str]:
        node = await self._execute(
            INSTALLED_MODULES_QUERY, None, operation="installedModules", error_cls=FetchError,
        )
        modules = node.get("installedModules")
        if modules is None:
            return []
        if not isinstance(modules, list):
            raise FetchError("Malformed response: 'installedModules' is not a list", operation="installedModules")
        return [str(m) for m in modules if m is not None]

    async def query_available_updates(self) -> AvailableUpdates:
        node = await self._execute(
            AVAILABLE_UPDATES_QUERY, None, operation="availableUpdates", error_cls=FetchError,
        )
        updates = node.get("availableUpdates") or []
        if not isinstance(updates, list):
            raise FetchError("Malformed response: 'availableUpdates' is not a list", operation="availableUpdates")
        return AvailableUpdates(
            updates=[str(u) for u in updates if u is not None],
            last_update_time=node.get("lastUpdateTime"),
        )

    async def query_bundle_detail(self, name: str) -> BundleDetail | None:
        node = await self._execute(
            BUNDLE_DETAIL_QUERY,
            {"module": name, "depth": self._graph_depth},
            operation="bundle",
            error_cls=FetchError,
            target=name,
        )
        raw = node.get("bundle")
        if raw is None:
            return None
        try:
            return BundleDetail.model_validate(raw)
        except ValidationError as e:
            raise FetchError(f"Malformed bundle detail: {e}", operation="bundle", target=name) from e

    # ── Mutations ───────────────────────────────────────────────

    async def mutate_bundle(self, bundle_id: int, operation: BundleOperation) -> bool:
        operation = BundleOperation(operation)
        node = await self._execute(
            BUNDLE_MUTATIONS[operation],
            {"bundleId": bundle_id},
            operation=operation.value,
            error_cls=MutationError,
            target=bundle_id,
        )
        bundle = node.get("bundle")
        if not isinstance(bundle, dict):
            raise MutationError("Malformed response: missing 'bundle'", operation=operation.value, target=bundle_id)
        return bool(bundle.get(operation.value))

    async def mutate_update_all_modules(
        self,
        *,
        platform_only: bool | None = None,
        filters: Sequence[str] | None = None,
    ) -> list[str]:
        variables: dict[str, Any] = {}
        if platform_only is not None:
            variables["jahiaOnly"] = platform_only
        if filters:
            variables["filters"] = list(filters)

        query = UPDATE_ALL_MUTATION_WITH_ARGS if variables else UPDATE_ALL_MUTATION
        node = await self._execute(query, variables, operation="updateModules", error_cls=MutationError, target="all")
        return [str(m) for m in node.get("updateModules") or [] if m is not None]
