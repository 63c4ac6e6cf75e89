"""
Configuration loader — reads bundlectl.yml into typed settings.

The file is optional: without one, defaults plus environment variables
apply. It is looked up from the current directory upward, or given
explicitly with ``--config``. Environment variables override the file:

    BCTL_REGISTRY_URL, BCTL_REGISTRY_USERNAME,
    BCTL_REGISTRY_PASSWORD, BCTL_REGISTRY_TOKEN
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE = "bundlectl.yml"

_ENV_OVERRIDES = {
    "BCTL_REGISTRY_URL": "url",
    "BCTL_REGISTRY_USERNAME": "username",
    "BCTL_REGISTRY_PASSWORD": "password",
    "BCTL_REGISTRY_TOKEN": "token",
}


class ConfigError(Exception):
    """Raised when configuration is invalid or an explicit file is missing."""


class RegistrySettings(BaseModel):
    url: str = "http://localhost:8080"
    endpoint: str = "/modules/graphql"
    username: str | None = None
    password: str | None = None
    token: str | None = None
    timeout: float = Field(default=30.0, gt=0)
    verify_ssl: bool = True
    graph_depth: int = Field(default=2, ge=1)


class ViewSettings(BaseModel):
    order_by: Literal["name", "version", "state"] = "name"
    order: Literal["asc", "desc"] = "asc"


class AuditSettings(BaseModel):
    enabled: bool = False
    path: str = ".state/audit.ndjson"


class Settings(BaseModel):
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    view: ViewSettings = Field(default_factory=ViewSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)

    source: Path | None = Field(default=None, exclude=True)  # file the settings came from

    def audit_path(self) -> Path:
        """Ledger path, relative to the config file's directory when relative."""
        path = Path(self.audit.path)
        if path.is_absolute():
            return path
        base = self.source.parent if self.source else Path.cwd()
        return base / path


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for bundlectl.yml starting from the given directory, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit config file. If None, searches upward; if nothing
            is found, defaults are used.
        env: Environment to read overrides from (default: ``os.environ``).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    env = os.environ if env is None else env
    data: dict = {}

    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    if path is None:
        path = find_config_file()

    if path is not None:
        logger.debug("Loading config from %s", path)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(raw).__name__}")
        data = raw

    section = data.get("registry") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'registry' must be a mapping in {path}")
    registry = dict(section)
    for var, key in _ENV_OVERRIDES.items():
        if env.get(var):
            registry[key] = env[var]
    data = {**data, "registry": registry}

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    settings.source = path.resolve() if path else None
    logger.info("Registry endpoint: %s%s", settings.registry.url, settings.registry.endpoint)
    return settings
