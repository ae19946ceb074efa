"""Sort column and order for the index table."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key

from esticli.models import IndexRate


class SortColumn(Enum):
    """Table columns in cycling order."""

    NAME = "name"
    DOC_COUNT = "doc_count"
    RATE = "rate"
    SIZE = "size"
    HEALTH = "health"

    @property
    def title(self) -> str:
        return _TITLES[self]

    def next(self) -> SortColumn:
        members = list(SortColumn)
        return members[(members.index(self) + 1) % len(members)]

    def prev(self) -> SortColumn:
        members = list(SortColumn)
        return members[(members.index(self) - 1) % len(members)]


_TITLES = {
    SortColumn.NAME: "Index",
    SortColumn.DOC_COUNT: "Docs",
    SortColumn.RATE: "Rate/s",
    SortColumn.SIZE: "Size",
    SortColumn.HEALTH: "Health",
}


class SortOrder(Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

    def toggle(self) -> SortOrder:
        if self is SortOrder.ASCENDING:
            return SortOrder.DESCENDING
        return SortOrder.ASCENDING

    @property
    def arrow(self) -> str:
        return "▲" if self is SortOrder.ASCENDING else "▼"


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_rate(a: float, b: float) -> int:
    # NaN compares equal to everything
    if math.isnan(a) or math.isnan(b):
        return 0
    return _cmp(a, b)


_COMPARATORS = {
    SortColumn.NAME: lambda a, b: _cmp(a.name, b.name),
    SortColumn.DOC_COUNT: lambda a, b: _cmp(a.doc_count, b.doc_count),
    SortColumn.RATE: lambda a, b: _cmp_rate(a.rate_per_sec, b.rate_per_sec),
    SortColumn.SIZE: lambda a, b: _cmp(a.size_bytes, b.size_bytes),
    SortColumn.HEALTH: lambda a, b: _cmp(a.health, b.health),
}


@dataclass
class SortSetting:
    """Active sort column and direction. Defaults to rate, highest first."""

    column: SortColumn = SortColumn.RATE
    order: SortOrder = SortOrder.DESCENDING

    def next_column(self) -> None:
        self.column = self.column.next()

    def prev_column(self) -> None:
        self.column = self.column.prev()

    def toggle_order(self) -> None:
        self.order = self.order.toggle()

    def sort(self, indices: list[IndexRate]) -> list[IndexRate]:
        """Return a new list sorted by this setting. Stable for equal keys."""
        key = cmp_to_key(_COMPARATORS[self.column])
        return sorted(indices, key=key, reverse=self.order is SortOrder.DESCENDING)
