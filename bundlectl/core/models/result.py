"""
OperationResult — the outcome contract of every state-changing operation.

Lifecycle and bulk-update operations never raise to their caller.
Whatever happened (success, refusal, registry failure) is captured
here, together with whether the resynchronizing re-fetch went through.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class OperationResult(BaseModel):
    """Result of one lifecycle or bulk operation."""

    operation: str                   # start, stop, refresh, update_all, check_updates
    target: str = ""                 # bundle id, or "all" for bulk operations
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    message: str = ""
    error: str | None = None
    resynced: bool = False           # did the follow-up re-fetch succeed?

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def attempted(self) -> bool:
        """Whether the registry was actually asked to do something."""
        return self.status != "skipped"

    @classmethod
    def success(cls, operation: str, target: str = "", message: str = "", **kwargs: Any) -> OperationResult:
        """Create a success result."""
        return cls(operation=operation, target=target, status="ok", message=message, **kwargs)

    @classmethod
    def failure(cls, operation: str, target: str = "", error: str = "", **kwargs: Any) -> OperationResult:
        """Create a failure result."""
        return cls(operation=operation, target=target, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, operation: str, target: str = "", reason: str = "", **kwargs: Any) -> OperationResult:
        """Create a result for an operation that was not attempted."""
        return cls(operation=operation, target=target, status="skipped", message=reason, **kwargs)
