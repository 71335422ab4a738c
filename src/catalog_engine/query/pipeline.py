"""Derive a filtered, searched and sorted view of a dataset.

Stages run in a fixed order, each narrowing the previous stage's output:

1. changed-only (evaluated against the full dataset's snapshot)
2. free-text search, with ``column:value`` routing
3. per-column allow-list filters (AND across columns, OR within a column)
4. stable, blanks-last sort

Nothing here mutates the dataset; every surviving row keeps its position in
the live rows so edits made through the view can be written back.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from catalog_engine.dataset import Dataset
from catalog_engine.logging import NullLogger, SessionLogger
from catalog_engine.models import Row, ViewRow, has_value, stringify
from catalog_engine.query.sorting import sort_blanks_last
from catalog_engine.query.state import HAS_VALUE, FilterState, QueryState, SortSpec


def _only_changed(dataset: Dataset, rows: Iterable[ViewRow]) -> list[ViewRow]:
    return [item for item in rows if dataset.is_changed(item.row_index, item.row)]


def resolve_search_column(query: str, headers: Sequence[str]) -> tuple[str | None, str]:
    """Split ``prefix:value`` when the prefix names a header.

    Returns ``(header, needle)``; ``header`` is ``None`` when the whole query
    should be matched against every column.
    """

    query = query.strip()
    colon = query.find(":")
    if colon > 0:
        prefix = query[:colon].strip().lower()
        for header in headers:
            if header.lower() == prefix:
                return header, query[colon + 1 :].strip().lower()
    return None, query.lower()


def _search(rows: Iterable[ViewRow], query: str, headers: Sequence[str]) -> list[ViewRow]:
    column, needle = resolve_search_column(query, headers)
    if column is not None:
        return [item for item in rows if needle in stringify(item.get(column)).lower()]
    return [
        item
        for item in rows
        if any(needle in stringify(item.get(header)).lower() for header in headers)
    ]


def row_matches_filters(row: Row, filters: FilterState) -> bool:
    for column, accepted in filters.items():
        value = row.get(column)
        if HAS_VALUE in accepted:
            if not has_value(value):
                return False
        elif stringify(value) not in accepted:
            return False
    return True


def _sort(rows: Sequence[ViewRow], sort: SortSpec) -> list[ViewRow]:
    return sort_blanks_last(rows, lambda item: item.get(sort.column), descending=sort.descending)


def derive_view(
    dataset: Dataset,
    query: QueryState | None = None,
    *,
    logger: SessionLogger | None = None,
) -> list[ViewRow]:
    query = query or QueryState()
    logger = logger or NullLogger()

    result = [ViewRow(position=pos, row=row) for pos, row in enumerate(dataset.rows)]

    if query.show_only_changed:
        result = _only_changed(dataset, result)

    if query.search_query.strip():
        result = _search(result, query.search_query, dataset.headers)

    if query.filters:
        result = [item for item in result if row_matches_filters(item.row, query.filters)]

    if query.sort is not None:
        result = _sort(result, query.sort)

    logger.event(
        "query.view_derived",
        level=logging.DEBUG,
        source_rows=len(dataset.rows),
        view_rows=len(result),
        filter_columns=len(query.filters),
        search=bool(query.search_query.strip()),
        sorted=query.sort is not None,
        only_changed=query.show_only_changed,
    )
    return result


def matching_positions(
    dataset: Dataset,
    query: QueryState,
    *,
    include_search: bool = False,
) -> list[int]:
    """Live positions selected by the changed-only toggle and column filters.

    Search is ignored unless ``include_search`` is set; ordering is the live
    row order.
    """

    rows = [ViewRow(position=pos, row=row) for pos, row in enumerate(dataset.rows)]
    if query.show_only_changed:
        rows = _only_changed(dataset, rows)
    if include_search and query.search_query.strip():
        rows = _search(rows, query.search_query, dataset.headers)
    if query.filters:
        rows = [item for item in rows if row_matches_filters(item.row, query.filters)]
    return [item.position for item in rows]


__all__ = [
    "derive_view",
    "matching_positions",
    "resolve_search_column",
    "row_matches_filters",
]
