"""Immutable filter / search / sort state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping

HAS_VALUE = "__HAS_VALUE__"
"""Filter sentinel: accept any row whose cell is non-empty."""

FilterState = Mapping[str, frozenset[str]]


@dataclass(frozen=True, slots=True)
class SortSpec:
    column: str
    descending: bool = False


def _freeze_filters(filters: Mapping[str, Iterable[str]]) -> FilterState:
    frozen = {column: frozenset(values) for column, values in filters.items()}
    return MappingProxyType({column: values for column, values in frozen.items() if values})


@dataclass(frozen=True, slots=True)
class QueryState:
    """Everything the query pipeline needs besides the dataset.

    Instances are never mutated; the ``with_*`` helpers return new states.
    Filter columns whose value set becomes empty are dropped entirely.
    """

    filters: FilterState = field(default_factory=lambda: MappingProxyType({}))
    search_query: str = ""
    sort: SortSpec | None = None
    show_only_changed: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", _freeze_filters(self.filters))

    def with_filter(self, column: str, values: Iterable[str]) -> "QueryState":
        updated = dict(self.filters)
        values = frozenset(values)
        if values:
            updated[column] = values
        else:
            updated.pop(column, None)
        return replace(self, filters=updated)

    def toggle_filter_value(self, column: str, value: str) -> "QueryState":
        current = self.filters.get(column, frozenset())
        values = current - {value} if value in current else current | {value}
        return self.with_filter(column, values)

    def without_filters(self) -> "QueryState":
        return replace(self, filters={})

    def with_search(self, query: str) -> "QueryState":
        return replace(self, search_query=query)

    def with_sort(self, sort: SortSpec | None) -> "QueryState":
        return replace(self, sort=sort)

    def with_only_changed(self, enabled: bool) -> "QueryState":
        return replace(self, show_only_changed=bool(enabled))

    @property
    def active_filter_count(self) -> int:
        return sum(len(values) for values in self.filters.values())


__all__ = ["FilterState", "HAS_VALUE", "QueryState", "SortSpec"]
