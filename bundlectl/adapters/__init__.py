"""Adapters — registry transports.

Public re-exports for convenient access.
"""

from bundlectl.adapters.base import AvailableUpdates, RegistryGateway
from bundlectl.adapters.mock import MockRegistryGateway

__all__ = [
    "AvailableUpdates",
    "MockRegistryGateway",
    "RegistryGateway",
]
