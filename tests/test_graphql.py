"""
Tests for the GraphQL registry gateway, over a fake aiohttp session.
"""

import json

import aiohttp
import pytest

from bundlectl.adapters.graphql import (
    BUNDLE_MUTATIONS,
    UPDATE_ALL_MUTATION,
    UPDATE_ALL_MUTATION_WITH_ARGS,
    GraphQLRegistryGateway,
    unwrap_envelope,
)
from bundlectl.core.errors import FetchError, MutationError
from bundlectl.core.models.bundle import BundleOperation


def envelope(**fields) -> dict:
    return {"data": {"admin": {"modulesManagement": fields}}}


class FakeResponse:
    def __init__(self, status: int, body):
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body if isinstance(self._body, str) else json.dumps(self._body)

    async def json(self, content_type=None):
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Answers POSTs from a queue and remembers what was sent."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[dict] = []
        self.closed = False

    def post(self, url, json=None, ssl=None):
        self.requests.append({"url": url, "json": json, "ssl": ssl})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


def make_gateway(*responses, **kwargs) -> tuple[GraphQLRegistryGateway, FakeSession]:
    session = FakeSession(*responses)
    return GraphQLRegistryGateway("http://registry:8080/", session=session, **kwargs), session


class TestEnvelope:
    def test_unwrap(self):
        assert unwrap_envelope(envelope(installedModules=[]), operation="x") == {"installedModules": []}

    def test_graphql_errors(self):
        with pytest.raises(FetchError, match="Permission denied"):
            unwrap_envelope({"errors": [{"message": "Permission denied"}]}, operation="x")

    def test_missing_admin(self):
        with pytest.raises(FetchError, match="admin"):
            unwrap_envelope({"data": {}}, operation="x")

    def test_not_an_object(self):
        with pytest.raises(MutationError):
            unwrap_envelope([], operation="x", error_cls=MutationError)


class TestQueries:
    @pytest.mark.asyncio
    async def test_installed_modules(self):
        gw, session = make_gateway(FakeResponse(200, envelope(installedModules=["a/1:ACTIVE"])))
        assert await gw.query_installed_modules() == ["a/1:ACTIVE"]
        assert session.requests[0]["url"] == "http://registry:8080/modules/graphql"
        assert "variables" not in session.requests[0]["json"]

    @pytest.mark.asyncio
    async def test_null_installed_modules(self):
        gw, _ = make_gateway(FakeResponse(200, envelope(installedModules=None)))
        assert await gw.query_installed_modules() == []

    @pytest.mark.asyncio
    async def test_null_entries_dropped(self):
        gw, _ = make_gateway(
            FakeResponse(200, envelope(installedModules=["a/1:ACTIVE", None])),
            FakeResponse(200, envelope(availableUpdates=[None, "a/1:2"], lastUpdateTime=None)),
        )
        assert await gw.query_installed_modules() == ["a/1:ACTIVE"]
        assert (await gw.query_available_updates()).updates == ["a/1:2"]

    @pytest.mark.asyncio
    async def test_available_updates(self):
        gw, _ = make_gateway(FakeResponse(200, envelope(availableUpdates=["a/1:2"], lastUpdateTime=1700000000000)))
        answer = await gw.query_available_updates()
        assert answer.updates == ["a/1:2"]
        assert answer.last_update_time == 1700000000000

    @pytest.mark.asyncio
    async def test_bundle_detail(self):
        raw = {"bundleId": 5, "symbolicName": "a", "state": "RESOLVED", "version": "1", "manifest": None}
        gw, session = make_gateway(FakeResponse(200, envelope(bundle=raw)), graph_depth=3)
        detail = await gw.query_bundle_detail("a")
        assert detail.bundle_id == 5
        assert session.requests[0]["json"]["variables"] == {"module": "a", "depth": 3}

    @pytest.mark.asyncio
    async def test_absent_bundle(self):
        gw, _ = make_gateway(FakeResponse(200, envelope(bundle=None)))
        assert await gw.query_bundle_detail("ghost") is None

    @pytest.mark.asyncio
    async def test_http_error(self):
        gw, _ = make_gateway(FakeResponse(500, "Internal Server Error"))
        with pytest.raises(FetchError, match="HTTP 500"):
            await gw.query_installed_modules()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        gw, _ = make_gateway(FakeResponse(200, "<html>"))
        with pytest.raises(FetchError, match="Invalid JSON"):
            await gw.query_installed_modules()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        gw, _ = make_gateway(aiohttp.ClientConnectionError("refused"))
        with pytest.raises(FetchError, match="unreachable"):
            await gw.query_available_updates()


class TestMutations:
    @pytest.mark.asyncio
    async def test_bundle_operation(self):
        gw, session = make_gateway(FakeResponse(200, envelope(bundle={"start": True})))
        assert await gw.mutate_bundle(7, BundleOperation.START) is True
        body = session.requests[0]["json"]
        assert body["query"] == BUNDLE_MUTATIONS[BundleOperation.START]
        assert body["variables"] == {"bundleId": 7}

    @pytest.mark.asyncio
    async def test_bundle_operation_refused(self):
        gw, _ = make_gateway(FakeResponse(200, envelope(bundle={"stop": False})))
        assert await gw.mutate_bundle(7, BundleOperation.STOP) is False

    @pytest.mark.asyncio
    async def test_mutation_errors_are_mutation_errors(self):
        gw, _ = make_gateway(FakeResponse(200, {"errors": [{"message": "Bundle is a fragment"}]}))
        with pytest.raises(MutationError, match="fragment") as exc:
            await gw.mutate_bundle(7, BundleOperation.REFRESH)
        assert exc.value.target == 7

    @pytest.mark.asyncio
    async def test_update_all_without_options(self):
        gw, session = make_gateway(FakeResponse(200, envelope(updateModules=["a", "b"])))
        assert await gw.mutate_update_all_modules() == ["a", "b"]
        assert session.requests[0]["json"] == {"query": UPDATE_ALL_MUTATION}

    @pytest.mark.asyncio
    async def test_update_all_with_options(self):
        gw, session = make_gateway(FakeResponse(200, envelope(updateModules=None)))
        assert await gw.mutate_update_all_modules(platform_only=False, filters=("forms",)) == []
        body = session.requests[0]["json"]
        assert body["query"] == UPDATE_ALL_MUTATION_WITH_ARGS
        assert body["variables"] == {"jahiaOnly": False, "filters": ["forms"]}


class TestSessionOwnership:
    @pytest.mark.asyncio
    async def test_injected_session_left_open(self):
        gw, session = make_gateway()
        await gw.close()
        assert not session.closed

    def test_url_joins_endpoint(self):
        gw = GraphQLRegistryGateway("https://registry", endpoint="gql", verify_ssl=False)
        assert gw.url == "https://registry/gql"
        assert gw.name == "graphql"
