"""
Registry error taxonomy.

The transport raises these; the controllers catch them at the operation
boundary and turn them into ``OperationResult`` failures plus a
notification. Nothing in this hierarchy is meant to escape to the view.
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base class for everything that can go wrong talking to the registry."""

    def __init__(self, message: str, *, operation: str = "", target: Any = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.target = target

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "operation": self.operation,
            "target": self.target,
        }


class FetchError(RegistryError):
    """A query failed or came back with a malformed envelope."""


class NotFoundError(RegistryError):
    """The registry has no bundle under the requested name.

    Gateways report "absent" as ``None``; this exception is only raised by
    callers that insist on a bundle being present (see
    ``LifecycleController.require_detail``).
    """


class MutationError(RegistryError):
    """A lifecycle or bulk mutation failed. Never retried."""
