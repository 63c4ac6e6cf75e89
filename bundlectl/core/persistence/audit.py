"""
Operation ledger — append-only history of state-changing operations.

Each lifecycle or bulk operation appends one NDJSON line: what was
attempted, against which bundle, how it ended. Entries are never
rewritten; a corrupt line is skipped on read, not fatal.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from bundlectl.core.models.result import OperationResult

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single ledger line."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation: str = ""            # start, stop, refresh, update_all
    target: str = ""               # bundle id or "all"
    module: str = ""               # display name of the row, if any
    status: str = ""               # ok, skipped, failed
    duration_ms: int = 0
    error: str | None = None
    resynced: bool = False
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: OperationResult, *, module: str = "") -> AuditEntry:
        return cls(
            timestamp=result.ended_at,
            operation=result.operation,
            target=result.target,
            module=module,
            status=result.status,
            duration_ms=result.duration_ms,
            error=result.error,
            resynced=result.resynced,
            context=dict(result.metadata),
        )


class AuditWriter:
    """Append-only ledger writer.

    Write failures are logged and swallowed: losing a ledger line must
    never turn a finished registry operation into a failure.
    """

    def __init__(self, path: Path | None = None, root: Path | None = None):
        if path is not None:
            self._path = path
        elif root is not None:
            self._path = root / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s/%s", entry.operation, entry.target)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def record(self, result: OperationResult, *, module: str = "") -> None:
        """Append the outcome of an operation."""
        self.write(AuditEntry.from_result(result, module=module))

    def read_all(self) -> list[AuditEntry]:
        """All entries, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:] if n > 0 else []
