"""Mutable dataset with a pristine snapshot and bounded undo history."""

from __future__ import annotations

import copy
import logging
from typing import Iterable, Sequence

from catalog_engine.exceptions import InvalidIndexError
from catalog_engine.history import HistoryStack
from catalog_engine.logging import NullLogger, SessionLogger
from catalog_engine.models import CellChange, CellValue, ColumnMetadata, ParseResult, Row, stringify

Rows = tuple[Row, ...]


class Dataset:
    """Live rows plus the load-time snapshot used to detect edits.

    Mutators address rows by *position* in the live ``rows`` tuple; positions
    shift after :meth:`delete_row`. :meth:`is_changed` takes the load-time
    ``row_index`` instead. Every mutator builds a new tuple and swaps it in,
    so readers never see a half-applied edit.
    """

    def __init__(self, *, history_limit: int = 50, logger: SessionLogger | None = None) -> None:
        self._logger = logger or NullLogger()
        self._history: HistoryStack[Rows] = HistoryStack(history_limit)
        self._rows: Rows = ()
        self._snapshot: Rows = ()
        self.headers: list[str] = []
        self.column_metadata: list[ColumnMetadata] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def rows(self) -> Rows:
        return self._rows

    @property
    def snapshot(self) -> Rows:
        return self._snapshot

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def __len__(self) -> int:
        return len(self._rows)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, parsed: ParseResult) -> None:
        """Replace everything with ``parsed``; history is discarded."""

        rows = tuple(
            Row(row_index=idx, values=copy.deepcopy(dict(values)))
            for idx, values in enumerate(parsed.rows)
        )
        self.headers = list(parsed.headers)
        self.column_metadata = list(parsed.column_metadata)
        self._rows = rows
        self._snapshot = tuple(
            Row(row_index=row.row_index, values=copy.deepcopy(dict(row.values)))
            for row in rows
        )
        self._history.clear()

        self._logger.event(
            "dataset.loaded",
            message=f"Loaded {len(rows)} row(s)",
            row_count=len(rows),
            column_count=len(self.headers),
        )

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def _check_position(self, position: int) -> None:
        size = len(self._rows)
        if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < size:
            raise InvalidIndexError(position, size)

    def _commit(self, rows: Rows, *, operation: str, affected: int) -> None:
        self._history.push(self._rows)
        self._rows = rows
        self._logger.event(
            "dataset.mutated",
            level=logging.DEBUG,
            operation=operation,
            row_count=len(rows),
            affected=affected,
            history_depth=len(self._history),
        )

    def update_cell(self, position: int, column: str, value: CellValue) -> None:
        self._check_position(position)
        rows = list(self._rows)
        rows[position] = rows[position].with_value(column, value)
        self._commit(tuple(rows), operation="update_cell", affected=1)

    def bulk_update(self, changes: Iterable[CellChange | tuple[int, str, CellValue]]) -> None:
        """Apply many edits as a single undo unit.

        All positions are validated before anything changes.
        """

        normalized = [c if isinstance(c, CellChange) else CellChange(*c) for c in changes]
        for change in normalized:
            self._check_position(change.position)
        if not normalized:
            return

        rows = list(self._rows)
        for change in normalized:
            rows[change.position] = rows[change.position].with_value(change.column, change.value)
        self._commit(tuple(rows), operation="bulk_update", affected=len(normalized))

    def apply_to_rows(self, positions: Sequence[int], column: str, value: CellValue) -> None:
        """Set ``column`` to ``value`` on every listed row as one undo unit."""

        self.bulk_update(CellChange(position, column, value) for position in positions)

    def delete_row(self, position: int) -> None:
        self._check_position(position)
        rows = self._rows[:position] + self._rows[position + 1 :]
        self._commit(rows, operation="delete_row", affected=1)

    def undo(self) -> bool:
        """Restore the rows as they were before the last mutation.

        Returns ``False`` (and changes nothing) when there is no history.
        """

        previous = self._history.pop()
        if previous is None:
            return False
        self._rows = previous
        self._logger.event(
            "dataset.undo",
            level=logging.DEBUG,
            row_count=len(previous),
            history_depth=len(self._history),
        )
        return True

    # ------------------------------------------------------------------
    # Diffing
    # ------------------------------------------------------------------

    def original(self, row_index: int) -> Row | None:
        if 0 <= row_index < len(self._snapshot):
            return self._snapshot[row_index]
        return None

    def is_changed(self, row_index: int, current: Row | None = None) -> bool:
        """True when any column differs (as text) from the loaded snapshot."""

        original = self.original(row_index)
        if original is None:
            return False
        if current is None:
            current = next((row for row in self._rows if row.row_index == row_index), None)
            if current is None:
                return False
        return any(
            stringify(current.get(header)) != stringify(original.get(header))
            for header in self.headers
        )

    def changed_columns(self, row: Row) -> list[str]:
        original = self.original(row.row_index)
        if original is None:
            return []
        return [
            header
            for header in self.headers
            if stringify(row.get(header)) != stringify(original.get(header))
        ]


__all__ = ["Dataset", "Rows"]
