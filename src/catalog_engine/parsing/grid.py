from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any, Sequence

from catalog_engine.logging import NullLogger, SessionLogger
from catalog_engine.models import (
    GROUP_GENERAL,
    GROUP_IDENTIFICATION,
    CellValue,
    ColumnMetadata,
    ParseResult,
    normalize_cell,
    stringify,
)
from catalog_engine.settings import Settings

_NEWLINES = re.compile(r"[\r\n]+")


def _cell_text(value: Any) -> str:
    return stringify(value).strip()


def _is_empty_row(row: Sequence[Any] | None) -> bool:
    return not row or all(_cell_text(cell) == "" for cell in row)


def _matched_keywords(row: Sequence[Any], keywords: Sequence[str]) -> list[str]:
    cells = {_cell_text(cell).lower() for cell in row}
    return [kw for kw in keywords if kw in cells]


def _looks_like_header(row: Sequence[Any], keywords: Sequence[str]) -> tuple[bool, list[str]]:
    matched = _matched_keywords(row, keywords)
    if len(matched) >= 2:
        return True, matched
    non_empty = sum(1 for cell in row if _cell_text(cell) != "")
    return (len(matched) >= 1 and non_empty > 3), matched


def detect_header_row(
    grid: Sequence[Sequence[Any]],
    *,
    scan_rows: int = 10,
    keywords: Sequence[str] = (),
) -> tuple[int, list[str], bool]:
    """Locate the header row.

    Returns ``(row_index, matched_keywords, used_fallback)``. Rows within the
    first ``scan_rows`` are tested against the keyword vocabulary; the first
    qualifying row wins. Without a match the first non-empty row is used, or
    row 0 when every row is blank.
    """

    for idx in range(min(len(grid), scan_rows)):
        row = grid[idx]
        if _is_empty_row(row):
            continue
        qualifies, matched = _looks_like_header(row, keywords)
        if qualifies:
            return idx, matched, False

    for idx, row in enumerate(grid):
        if not _is_empty_row(row):
            return idx, [], True
    return 0, [], True


def detect_group_row(grid: Sequence[Sequence[Any]], header_row_index: int) -> int | None:
    """The row directly above the header is the group row when it has content."""

    if header_row_index <= 0:
        return None
    above = grid[header_row_index - 1]
    return None if _is_empty_row(above) else header_row_index - 1


def sanitize_header(value: Any) -> str:
    return _NEWLINES.sub(" ", _cell_text(value))


def _extract_columns(
    header_row: Sequence[Any],
    group_row: Sequence[Any] | None,
) -> tuple[list[str], list[ColumnMetadata], list[int]]:
    headers: list[str] = []
    metadata: list[ColumnMetadata] = []
    source_indices: list[int] = []
    default_group = GROUP_IDENTIFICATION if group_row is not None else GROUP_GENERAL
    current_group = ""

    for col_idx, cell in enumerate(header_row):
        header = sanitize_header(cell)
        if not header:
            continue

        if group_row is not None:
            group_value = _cell_text(group_row[col_idx]) if col_idx < len(group_row) else ""
            # A blank group cell resets the current group.
            current_group = group_value

        headers.append(header)
        source_indices.append(col_idx)
        metadata.append(ColumnMetadata(header=header, group=current_group or default_group))

    return headers, metadata, source_indices


def _extract_rows(
    data_rows: Sequence[Sequence[Any]],
    headers: Sequence[str],
    source_indices: Sequence[int],
) -> list[dict[str, CellValue]]:
    rows: list[dict[str, CellValue]] = []
    for raw in data_rows:
        raw = raw or ()
        record: dict[str, CellValue] = {}
        for header, col_idx in zip(headers, source_indices):
            value = raw[col_idx] if col_idx < len(raw) else None
            record[header] = normalize_cell(value)
        rows.append(record)
    return rows


def parse_grid(
    grid: Sequence[Sequence[Any]],
    *,
    settings: Settings | None = None,
    logger: SessionLogger | None = None,
) -> ParseResult:
    """Turn a raw row-major cell grid into headers, rows and column metadata.

    Never raises for malformed input: an empty grid yields
    :meth:`ParseResult.empty`, ragged rows are padded with ``""`` and a
    missing keyword header falls back to the first non-empty row.
    """

    settings = settings or Settings()
    logger = logger or NullLogger()

    if not grid:
        return ParseResult.empty()

    header_idx, matched, fallback = detect_header_row(
        grid,
        scan_rows=settings.header_scan_rows,
        keywords=settings.header_keywords,
    )
    group_idx = detect_group_row(grid, header_idx)

    logger.event(
        "parser.header_detected",
        level=logging.DEBUG,
        message=f"Header row {header_idx}" + (" (fallback)" if fallback else ""),
        header_row_index=header_idx,
        group_row_index=group_idx,
        matched_keywords=list(matched),
        fallback=fallback,
    )

    group_row = grid[group_idx] if group_idx is not None else None
    headers, metadata, source_indices = _extract_columns(grid[header_idx] or (), group_row)

    duplicates = [header for header, count in Counter(headers).items() if count > 1]
    if duplicates:
        logger.event(
            "parser.duplicate_headers",
            level=logging.WARNING,
            message="Duplicate headers collapse in header-keyed rows; the rightmost value wins",
            headers=duplicates,
        )

    rows = _extract_rows(grid[header_idx + 1 :], headers, source_indices)

    logger.event(
        "parser.completed",
        message=f"Parsed {len(rows)} row(s) across {len(headers)} column(s)",
        header_row_index=header_idx,
        column_count=len(headers),
        row_count=len(rows),
        has_group_row=group_idx is not None,
    )

    return ParseResult(
        headers=headers,
        rows=rows,
        column_metadata=metadata,
        header_row_index=header_idx,
        group_row_index=group_idx,
    )


__all__ = [
    "detect_group_row",
    "detect_header_row",
    "parse_grid",
    "sanitize_header",
]
