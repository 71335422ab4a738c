"""Source readers producing the parser's raw cell grid."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator, Sequence

from openpyxl import load_workbook

from catalog_engine.exceptions import InputError
from catalog_engine.logging import NullLogger, SessionLogger

DEFAULT_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


def _ensure_readable(path: Path, extensions: Sequence[str]) -> None:
    if not path.exists():
        raise InputError(f"Source file not found: {path}")
    if not path.is_file():
        raise InputError(f"Source path is not a file: {path}")
    if path.suffix.lower() not in extensions:
        raise InputError(f"File `{path}` has unsupported extension `{path.suffix}`")


def iter_csv_rows(path: Path) -> Iterator[list[Any]]:
    """Stream rows from a CSV file (BOM tolerant)."""

    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        for row_values in csv.reader(handle):
            yield list(row_values)


def read_first_sheet(path: Path) -> tuple[str, list[list[Any]]]:
    """Return the title and cell values of the first worksheet of a workbook."""

    try:
        workbook = load_workbook(filename=path, read_only=True, data_only=True)
    except Exception as exc:
        raise InputError(f"Could not read workbook `{path}`: {exc}") from exc

    try:
        if not workbook.worksheets:
            raise InputError(f"No sheets found in `{path}`")
        worksheet = workbook.worksheets[0]
        return worksheet.title, [list(values) for values in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_grid(
    path: Path,
    *,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    logger: SessionLogger | None = None,
) -> list[list[Any]]:
    """Read the raw row-major grid of ``path`` (first sheet only for workbooks)."""

    logger = logger or NullLogger()
    path = Path(path)
    _ensure_readable(path, extensions)

    sheet_name: str | None = None
    if path.suffix.lower() == ".csv":
        grid = list(iter_csv_rows(path))
    else:
        sheet_name, grid = read_first_sheet(path)

    logger.event(
        "source.read",
        message=f"Read {len(grid)} row(s) from {path.name}",
        path=str(path),
        sheet_name=sheet_name,
        row_count=len(grid),
    )
    return grid


__all__ = [
    "DEFAULT_EXTENSIONS",
    "iter_csv_rows",
    "read_first_sheet",
    "read_grid",
]
