"""
End-to-end tests for a module management session over the mock registry.
"""

import pytest

from bundlectl.adapters.mock import MockRegistryGateway
from bundlectl.core.services.session import ModuleManagementSession


@pytest.fixture
def session(gateway, notifier) -> ModuleManagementSession:
    return ModuleManagementSession(gateway, notifier=notifier)


class TestSession:
    @pytest.mark.asyncio
    async def test_filter_then_start(self, session):
        assert await session.open()
        assert [m.descriptor for m in session.state.modules] == ["mod-a/1.0:ACTIVE", "mod-b/2.1:RESOLVED"]

        session.state.set_filter("mod-a")
        assert [m.name for m in session.visible_modules()] == ["mod-a"]

        row = session.row("mod-b")
        await row.load()
        result = await row.start()
        assert result.ok
        assert row.detail.state == "ACTIVE"

    @pytest.mark.asyncio
    async def test_rows_are_cached_per_name(self, session):
        assert session.row("mod-a") is session.row("mod-a")
        assert session.row("mod-a") is not session.row("mod-b")

    @pytest.mark.asyncio
    async def test_open_failure(self, gateway, session, notifier):
        gateway.set_fetch_failure("query_available_updates", "no route to host")
        assert not await session.open()
        assert session.state.error == "no route to host"
        assert notifier.messages == ["Failed to load module data"]

    @pytest.mark.asyncio
    async def test_reopen_clears_error(self, gateway, session):
        gateway.set_fetch_failure("query_installed_modules")
        await session.open()
        gateway.clear_fetch_failure("query_installed_modules")
        assert await session.open()
        assert session.state.error is None

    @pytest.mark.asyncio
    async def test_initial_sort(self, gateway):
        session = ModuleManagementSession(gateway, order_by="state", order="desc")
        await session.open()
        assert [m.state for m in session.state.modules] == ["RESOLVED", "ACTIVE"]

    @pytest.mark.asyncio
    async def test_close_discards_state(self, gateway):
        gateway.add_update("mod-a", "1.1")
        async with ModuleManagementSession(gateway) as session:
            await session.open()
            session.row("mod-a")
            assert session.state.has_updates
        assert session.state.modules == []
        assert not session.state.has_updates
        assert gateway.closed

    @pytest.mark.asyncio
    async def test_demo_walkthrough(self):
        async with ModuleManagementSession(MockRegistryGateway.demo()) as session:
            assert await session.open()
            assert session.updates.can_update_all
            result = await session.updates.update_all()
            assert result.metadata["updated_modules"] == ["acme-forms"]
            assert not session.updates.can_update_all
