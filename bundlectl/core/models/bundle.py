"""
Bundle models — typed records for everything the registry reports.

List queries deliver compact descriptor strings which are parsed into
``ModuleRecord`` / ``UpdateRecord`` immediately on receipt. The per-row
detail query delivers a richer camelCase payload validated into
``BundleDetail``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class BundleState(StrEnum):
    """Lifecycle states the registry is known to report.

    Records keep ``state`` as a plain string: anything the registry sends
    that is not listed here is preserved as-is.
    """

    INSTALLED = "INSTALLED"
    RESOLVED = "RESOLVED"
    STARTING = "STARTING"
    STOPPING = "STOPPING"
    ACTIVE = "ACTIVE"
    UNINSTALLED = "UNINSTALLED"


class BundleOperation(StrEnum):
    """Operator-triggerable lifecycle mutations."""

    START = "start"
    STOP = "stop"
    REFRESH = "refresh"


_OPERATIONS_BY_STATE: dict[str, frozenset[BundleOperation]] = {
    BundleState.RESOLVED: frozenset({BundleOperation.START}),
    BundleState.ACTIVE: frozenset({BundleOperation.STOP, BundleOperation.REFRESH}),
}


def allowed_operations(state: str | None) -> frozenset[BundleOperation]:
    """Operations offered for a bundle in ``state`` (empty for any other state)."""
    return _OPERATIONS_BY_STATE.get(state or "", frozenset())


class ModuleRecord(BaseModel):
    """An installed module, parsed from ``<name>/<version>:<state>``."""

    name: str = ""
    version: str = ""
    state: str = ""

    @property
    def descriptor(self) -> str:
        return f"{self.name}/{self.version}:{self.state}"


class UpdateRecord(BaseModel):
    """An available update, parsed from ``<name>/<version>:<availableVersion>``."""

    name: str = ""
    current_version: str = ""
    available_version: str = ""


class ManifestEntry(BaseModel):
    """One key/value header from a bundle manifest."""

    key: str
    value: str = ""


class BundleDetail(BaseModel):
    """Full description of a single bundle.

    ``bundle_id`` is the only key lifecycle mutations accept.
    ``symbolic_name`` is for display: several versions of one symbolic
    name can be installed side by side under different ids.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    bundle_id: int
    symbolic_name: str = ""
    state: str = ""
    version: str = ""

    manifest: list[ManifestEntry] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    dependencies_graph: str | None = None          # mermaid source
    module_dependencies: list[str] = Field(default_factory=list)
    module_dependencies_graph: str | None = None   # mermaid source
    node_types_dependencies: list[str] = Field(default_factory=list)
    license: str | None = None
    services: list[str] = Field(default_factory=list)
    services_in_use: list[str] = Field(default_factory=list)
    sites_deployment: list[str] = Field(default_factory=list)

    @field_validator(
        "manifest",
        "dependencies",
        "module_dependencies",
        "node_types_dependencies",
        "services",
        "services_in_use",
        "sites_deployment",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("state", "version", "symbolic_name", mode="before")
    @classmethod
    def _none_to_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    def manifest_dict(self) -> dict[str, str]:
        """Manifest headers as a plain mapping (last duplicate wins)."""
        return {entry.key: entry.value for entry in self.manifest}

    @property
    def available_operations(self) -> frozenset[BundleOperation]:
        return allowed_operations(self.state)

    @property
    def label(self) -> str:
        """Display label, e.g. ``acme-module [42]``."""
        return f"{self.symbolic_name} [{self.bundle_id}]"
