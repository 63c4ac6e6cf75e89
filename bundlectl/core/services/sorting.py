"""
Record ordering.

The three-way rule below is reproduced exactly as the module screen has
always applied it, including its handling of missing values, because
operators rely on the resulting order of partially-populated rows:

    both values missing              →  0
    b missing, or b < a              → -1   (a first)
    a missing, or b > a              → +1   (b first)

That rule is the *descending* ordering; ascending is its negation.
Values are compared as-is (strings compare lexicographically, so
``"10.0" < "9.0"``). Empty strings count as missing.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Literal, TypeVar

SortOrder = Literal["asc", "desc"]

SORTABLE_FIELDS = ("name", "version", "state")

T = TypeVar("T")


def field_value(record: Any, field: str) -> Any:
    """Read ``field`` from a model or a mapping; ``None`` when absent."""
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def descending_comparator(a: Any, b: Any, field: str) -> int:
    av = field_value(a, field)
    bv = field_value(b, field)

    if not av and not bv:
        return 0
    if not bv or (av and bv < av):
        return -1
    if not av or bv > av:
        return 1
    return 0


def compare(a: Any, b: Any, field: str, order: SortOrder = "asc") -> int:
    """Compare two records on ``field`` in the given direction."""
    result = descending_comparator(a, b, field)
    return result if order == "desc" else -result


def get_comparator(order: SortOrder, field: str) -> Callable[[Any, Any], int]:
    """Two-argument comparator suitable for ``functools.cmp_to_key``."""
    return lambda a, b: compare(a, b, field, order)


def sort_records(records: Iterable[T], field: str = "name", order: SortOrder = "asc") -> list[T]:
    """Return a new, stably sorted list; ties keep their prior relative order."""
    return sorted(records, key=functools.cmp_to_key(get_comparator(order, field)))


def next_sort(current_field: str, current_order: SortOrder, clicked: str) -> tuple[str, SortOrder]:
    """Column-header toggle.

    Selecting the active ascending column flips it to descending; any
    other selection sorts that column ascending.
    """
    if clicked == current_field and current_order == "asc":
        return clicked, "desc"
    return clicked, "asc"
