"""Name filtering for the visible module list."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from bundlectl.core.services.sorting import field_value

T = TypeVar("T")


def normalize_needle(needle: str | None) -> str:
    return (needle or "").strip().lower()


def filter_records(records: Iterable[T], needle: str | None) -> list[T]:
    """Keep records whose name contains ``needle``, case-insensitively.

    A blank needle keeps everything, in order. Only ``name`` is matched;
    version and state are ignored.
    """
    wanted = normalize_needle(needle)
    if not wanted:
        return list(records)
    return [r for r in records if wanted in _name_of(r).lower()]


def _name_of(record: Any) -> str:
    return str(field_value(record, "name") or "")
