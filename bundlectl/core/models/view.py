"""
ViewState — the session-scoped state of the module management screen.

Holds the two independently fetched collections (installed modules and
available updates) plus the operator's filter and sort choices. Both
collections are replaced wholesale on every successful fetch; they are
never patched or merged client-side. The container lives exactly as long
as the session that owns it (``clear()`` on teardown).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bundlectl.core.models.bundle import ModuleRecord, UpdateRecord
from bundlectl.core.services.filtering import filter_records
from bundlectl.core.services.sorting import SORTABLE_FIELDS, SortOrder, next_sort, sort_records


@dataclass
class ViewState:
    modules: list[ModuleRecord] = field(default_factory=list)
    updates: list[UpdateRecord] = field(default_factory=list)
    last_update_time: Any = None       # raw registry timestamp, never reformatted here

    filter_text: str = ""
    order_by: str = "name"
    order: SortOrder = "asc"

    error: str | None = None           # last fetch failure, None when the last fetch was clean

    # ── Transitions ─────────────────────────────────────────────

    def set_modules(self, modules: list[ModuleRecord]) -> None:
        """Replace the installed collection, applying the current sort."""
        self.modules = sort_records(modules, self.order_by, self.order)

    def set_updates(self, updates: list[UpdateRecord], last_update_time: Any = None) -> None:
        """Replace the available-updates collection and its timestamp."""
        self.updates = list(updates)
        self.last_update_time = last_update_time

    def set_filter(self, text: str | None) -> None:
        self.filter_text = text or ""

    def set_sort(self, order_by: str, order: SortOrder | None = None) -> None:
        """Sort by ``order_by``.

        Without an explicit ``order`` this behaves like clicking a column
        header (see ``next_sort``). The current collection is re-sorted
        from its present order, so ties stay where they were.
        """
        if order_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by {order_by!r}; expected one of {', '.join(SORTABLE_FIELDS)}")
        if order is None:
            order_by, order = next_sort(self.order_by, self.order, order_by)
        if order not in ("asc", "desc"):
            raise ValueError(f"Invalid sort order {order!r}")
        self.order_by = order_by
        self.order = order
        self.modules = sort_records(self.modules, order_by, order)

    def clear(self) -> None:
        self.modules = []
        self.updates = []
        self.last_update_time = None
        self.error = None

    # ── Derived views ───────────────────────────────────────────

    def visible_modules(self) -> list[ModuleRecord]:
        """Sorted modules narrowed by the current filter."""
        return filter_records(self.modules, self.filter_text)

    @property
    def has_updates(self) -> bool:
        return bool(self.updates)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_by": self.order_by,
            "order": self.order,
            "filter": self.filter_text,
            "last_update_time": self.last_update_time,
            "modules": [m.model_dump() for m in self.visible_modules()],
            "updates": [u.model_dump() for u in self.updates],
            "error": self.error,
        }
