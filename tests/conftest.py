"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from bundlectl.adapters.mock import MockRegistryGateway
from bundlectl.core.models.view import ViewState
from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.core.services.notifications import CollectingNotifier


@pytest.fixture
def gateway() -> MockRegistryGateway:
    """Registry with mod-a (ACTIVE, id 1) and mod-b (RESOLVED, id 2)."""
    gw = MockRegistryGateway(last_update_time="2024-03-01T10:00:00Z")
    gw.add_bundle("mod-a", "1.0", "ACTIVE", bundle_id=1)
    gw.add_bundle("mod-b", "2.1", "RESOLVED", bundle_id=2)
    return gw


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def state() -> ViewState:
    return ViewState()


@pytest.fixture
def audit(tmp_path: Path) -> AuditWriter:
    return AuditWriter(path=tmp_path / ".state" / "audit.ndjson")
