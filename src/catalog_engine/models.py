"""Core value types shared by the parser, dataset, query pipeline and resolver."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from types import MappingProxyType
from typing import Any, Iterator, Mapping, TypeAlias

CellValue: TypeAlias = str | int | float
"""A normalized cell: ``""`` (empty), text, or a number."""

EMPTY: CellValue = ""

GROUP_IDENTIFICATION = "Identification"
GROUP_GENERAL = "General"


def normalize_cell(value: Any) -> CellValue:
    """Coerce a raw reader value into the closed cell value set."""

    if value is None:
        return EMPTY
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def stringify(value: Any) -> str:
    """Canonical text form used for filtering, search, sorting and diffing."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def is_blank(value: Any) -> bool:
    """True for values the sort stage orders last (``None`` and ``""``)."""

    return value is None or value == ""


def has_value(value: Any) -> bool:
    """True when the value is defined and not blank after trimming."""

    return value is not None and stringify(value).strip() != ""


@dataclass(frozen=True, slots=True)
class ColumnMetadata:
    header: str
    group: str


@dataclass(frozen=True, slots=True)
class Row:
    """One record: header-keyed cell values plus its load-time identity.

    Rows are never mutated and ``values`` is a read-only view; edits go through
    :meth:`with_value`, which copies only this row's mapping.
    """

    row_index: int
    values: Mapping[str, CellValue]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, column: str, default: CellValue | None = None) -> CellValue | None:
        return self.values.get(column, default)

    def __getitem__(self, column: str) -> CellValue:
        return self.values[column]

    def __contains__(self, column: object) -> bool:
        return column in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def with_value(self, column: str, value: CellValue) -> "Row":
        updated = dict(self.values)
        updated[column] = value
        return Row(row_index=self.row_index, values=updated)

    def copy(self) -> "Row":
        return Row(row_index=self.row_index, values=dict(self.values))


@dataclass(frozen=True, slots=True)
class ParseResult:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, CellValue]] = field(default_factory=list)
    column_metadata: list[ColumnMetadata] = field(default_factory=list)
    header_row_index: int | None = None
    group_row_index: int | None = None

    @classmethod
    def empty(cls) -> "ParseResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class ViewRow:
    """A row surviving the query pipeline, tagged with its live-array position."""

    position: int
    row: Row

    @property
    def row_index(self) -> int:
        return self.row.row_index

    def get(self, column: str, default: CellValue | None = None) -> CellValue | None:
        return self.row.get(column, default)


@dataclass(frozen=True, slots=True)
class CellChange:
    position: int
    column: str
    value: CellValue


__all__ = [
    "CellChange",
    "CellValue",
    "ColumnMetadata",
    "EMPTY",
    "GROUP_GENERAL",
    "GROUP_IDENTIFICATION",
    "ParseResult",
    "Row",
    "ViewRow",
    "has_value",
    "is_blank",
    "normalize_cell",
    "stringify",
]
