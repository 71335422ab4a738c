"""Column summaries used by filter panels and distribution charts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

import polars as pl

from catalog_engine.models import ColumnMetadata, Row, ViewRow, stringify

MISSING_LABEL = "N/A"
POSITION_COLUMN = "__position"


@dataclass(frozen=True, slots=True)
class ValueCount:
    name: str
    value: int
    percentage: float


def _rows_of(items: Iterable[Row | ViewRow]) -> list[Row]:
    return [item.row if isinstance(item, ViewRow) else item for item in items]


def unique_values(
    rows: Iterable[Row | ViewRow],
    headers: Sequence[str],
    *,
    cap: int = 200,
) -> dict[str, list[str]]:
    """Sorted distinct non-empty values per header, at most ``cap`` each."""

    rows = _rows_of(rows)
    result: dict[str, list[str]] = {}
    for header in headers:
        seen: set[str] = set()
        for row in rows:
            text = stringify(row.get(header))
            if text == "":
                continue
            seen.add(text)
            if len(seen) >= cap:
                break
        if seen:
            result[header] = sorted(seen)
    return result


def value_distribution(rows: Iterable[Row | ViewRow], column: str) -> list[ValueCount]:
    """Counts per value of ``column``, most frequent first.

    Blank cells are counted under ``"N/A"``; ties keep first-appearance order.
    """

    values = [stringify(row.get(column)) or MISSING_LABEL for row in _rows_of(rows)]
    if not values:
        return []

    counts = (
        pl.DataFrame({"name": values}, schema={"name": pl.Utf8})
        .group_by("name", maintain_order=True)
        .agg(pl.len().alias("value"))
        .sort("value", descending=True, maintain_order=True)
    )
    total = len(values)
    return [
        ValueCount(name=name, value=count, percentage=round(count / total * 100, 1))
        for name, count in counts.iter_rows()
    ]


def view_frame(view: Sequence[ViewRow], headers: Sequence[str]) -> pl.DataFrame:
    """Text-valued frame of a view, one column per unique header plus live positions."""

    columns = list(dict.fromkeys(headers))
    data: dict[str, list] = {POSITION_COLUMN: [item.position for item in view]}
    for header in columns:
        data[header] = [stringify(item.get(header)) for item in view]
    schema = {POSITION_COLUMN: pl.Int64, **{header: pl.Utf8 for header in columns}}
    return pl.DataFrame(data, schema=schema)


def group_columns(
    column_metadata: Iterable[ColumnMetadata],
    *,
    exclude: Iterable[str] = ("id", "name"),
) -> Mapping[str, list[str]]:
    """Headers grouped by their column group, in sheet order."""

    skipped = {name.strip().lower() for name in exclude}
    groups: dict[str, list[str]] = {}
    for meta in column_metadata:
        if meta.header.strip().lower() in skipped:
            continue
        groups.setdefault(meta.group, []).append(meta.header)
    return groups


__all__ = [
    "MISSING_LABEL",
    "POSITION_COLUMN",
    "ValueCount",
    "group_columns",
    "unique_values",
    "value_distribution",
    "view_frame",
]
