"""
Tests for available updates and the bulk "update all".
"""

import pytest

from bundlectl.core.services.inventory import ModuleInventory
from bundlectl.core.services.updates import UpdateCoordinator


@pytest.fixture
def coordinator(gateway, state, notifier, audit) -> UpdateCoordinator:
    return UpdateCoordinator(gateway, state, ModuleInventory(gateway, state), notifier=notifier, audit=audit)


class TestAvailableUpdates:
    @pytest.mark.asyncio
    async def test_list_parses_descriptors(self, gateway, state, coordinator):
        gateway.add_update("mod-b", "2.2")
        updates = await coordinator.list_available_updates()
        assert [(u.name, u.current_version, u.available_version) for u in updates] == [("mod-b", "2.1", "2.2")]
        assert state.last_update_time == "2024-03-01T10:00:00Z"
        assert coordinator.can_update_all

    @pytest.mark.asyncio
    async def test_nothing_to_update(self, coordinator):
        await coordinator.list_available_updates()
        assert not coordinator.can_update_all

    @pytest.mark.asyncio
    async def test_check_for_updates(self, gateway, coordinator, notifier):
        gateway.add_update("mod-a", "1.1")
        result = await coordinator.check_for_updates()
        assert result.ok
        assert notifier.messages == ["Fetching available updates"]

    @pytest.mark.asyncio
    async def test_check_for_updates_failure(self, gateway, state, coordinator, notifier):
        gateway.set_fetch_failure("query_available_updates", "timeout")
        result = await coordinator.check_for_updates()
        assert result.failed
        assert state.error == "timeout"
        assert notifier.messages == ["Fetching available updates", "Failed to fetch available updates"]


class TestUpdateAll:
    @pytest.mark.asyncio
    async def test_skipped_without_updates(self, gateway, coordinator):
        await coordinator.list_available_updates()
        gateway.reset()
        result = await coordinator.update_all()
        assert result.skipped
        assert gateway.call_count() == 0

    @pytest.mark.asyncio
    async def test_one_mutation_then_both_lists_refetched(self, gateway, state, coordinator, notifier):
        gateway.add_update("mod-b", "2.2")
        await coordinator.list_available_updates()
        gateway.reset()

        result = await coordinator.update_all()

        assert result.ok and result.resynced
        assert result.metadata["updated_modules"] == ["mod-b"]
        assert [c.method for c in gateway.call_log] == [
            "mutate_update_all_modules",
            "query_installed_modules",
            "query_available_updates",
        ]
        assert not state.has_updates
        assert [m.version for m in state.modules if m.name == "mod-b"] == ["2.2"]
        assert notifier.messages == ["All modules updated"]

    @pytest.mark.asyncio
    async def test_options_reach_the_registry(self, gateway, coordinator):
        gateway.add_update("mod-a", "1.1")
        gateway.add_update("mod-b", "2.2")
        await coordinator.list_available_updates()
        result = await coordinator.update_all(platform_only=True, filters=["mod-a"])
        assert gateway.calls("mutate_update_all_modules")[0].args == {"platform_only": True, "filters": ["mod-a"]}
        assert result.metadata["updated_modules"] == ["mod-a"]

    @pytest.mark.asyncio
    async def test_failure_still_refetches(self, gateway, state, coordinator, notifier):
        gateway.add_update("mod-b", "2.2")
        await coordinator.list_available_updates()
        gateway.set_mutation_failure("update_all", error="store unreachable")
        gateway.call_log.clear()

        result = await coordinator.update_all()

        assert result.failed
        assert result.error == "store unreachable"
        assert result.resynced
        assert gateway.call_count("mutate_update_all_modules") == 1
        assert gateway.call_count("query_installed_modules") == 1
        assert gateway.call_count("query_available_updates") == 1
        assert state.has_updates
        assert notifier.messages == ["Failed to update modules"]

    @pytest.mark.asyncio
    async def test_refetch_failure_sets_error(self, gateway, state, coordinator, notifier):
        gateway.add_update("mod-b", "2.2")
        await coordinator.list_available_updates()
        gateway.set_fetch_failure("query_installed_modules", "gone")

        result = await coordinator.update_all()

        assert result.ok
        assert not result.resynced
        assert state.error == "gone"
        assert "Failed to load module data" in notifier.messages
        assert gateway.call_count("query_available_updates") == 2

    @pytest.mark.asyncio
    async def test_recorded_in_ledger(self, gateway, coordinator, audit):
        gateway.add_update("mod-b", "2.2")
        await coordinator.list_available_updates()
        await coordinator.update_all()
        [entry] = audit.read_all()
        assert entry.operation == "update_all"
        assert entry.target == "all"
        assert entry.context == {"updated_modules": ["mod-b"]}
