"""Session controller owning the dataset, query state and asset map."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Sequence

from catalog_engine.analytics import unique_values
from catalog_engine.assets.asset_map import AssetMap
from catalog_engine.assets.resolver import has_image_link_column, resolve_image
from catalog_engine.assets.scheduler import UploadProgress, UploadScheduler
from catalog_engine.assets.uploads import UploadFn, accepts_image
from catalog_engine.dataset import Dataset
from catalog_engine.io.workbook import read_grid
from catalog_engine.logging import NullLogger, SessionLogger
from catalog_engine.models import CellChange, CellValue, ColumnMetadata, ParseResult, Row, ViewRow
from catalog_engine.parsing.grid import parse_grid
from catalog_engine.query.pipeline import derive_view, matching_positions
from catalog_engine.query.state import QueryState, SortSpec
from catalog_engine.settings import Settings


class CatalogSession:
    """All state for one interactive editing session.

    Loading a new grid replaces the dataset and resets filters, search, sort
    and the changed-only toggle; uploaded assets are kept.
    """

    def __init__(self, *, settings: Settings | None = None, logger: SessionLogger | None = None) -> None:
        self.settings = settings or Settings()
        self.logger = logger or NullLogger()
        self.dataset = Dataset(history_limit=self.settings.history_limit, logger=self.logger)
        self.assets = AssetMap()
        self.query = QueryState()
        self.has_image_links = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, parsed: ParseResult) -> None:
        self.dataset.load(parsed)
        self.query = QueryState()
        self.has_image_links = has_image_link_column(parsed.headers)

    def load_grid(self, grid: Sequence[Sequence[Any]]) -> ParseResult:
        parsed = parse_grid(grid, settings=self.settings, logger=self.logger)
        self.load(parsed)
        return parsed

    def load_file(self, path: Path) -> ParseResult:
        grid = read_grid(path, extensions=self.settings.supported_file_extensions, logger=self.logger)
        return self.load_grid(grid)

    @property
    def headers(self) -> list[str]:
        return self.dataset.headers

    @property
    def column_metadata(self) -> list[ColumnMetadata]:
        return self.dataset.column_metadata

    @property
    def rows(self) -> tuple[Row, ...]:
        return self.dataset.rows

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def update_cell(self, position: int, column: str, value: CellValue) -> None:
        self.dataset.update_cell(position, column, value)

    def bulk_update(self, changes: Iterable[CellChange | tuple[int, str, CellValue]]) -> None:
        self.dataset.bulk_update(changes)

    def delete_row(self, position: int) -> None:
        self.dataset.delete_row(position)

    def undo(self) -> bool:
        return self.dataset.undo()

    @property
    def can_undo(self) -> bool:
        return self.dataset.can_undo

    def apply_to_filtered(self, column: str, value: CellValue) -> int:
        """Set ``column`` on every row passing the changed-only toggle and column filters.

        Search and sort do not narrow the target rows. Returns the number of
        rows updated; nothing is recorded when no row matches.
        """

        positions = matching_positions(self.dataset, self.query)
        self.dataset.apply_to_rows(positions, column, value)
        return len(positions)

    # ------------------------------------------------------------------
    # Query state
    # ------------------------------------------------------------------

    def set_filter(self, column: str, values: Iterable[str]) -> None:
        self.query = self.query.with_filter(column, values)

    def toggle_filter_value(self, column: str, value: str) -> None:
        self.query = self.query.toggle_filter_value(column, value)

    def clear_filters(self) -> None:
        self.query = self.query.without_filters()

    def set_search(self, query: str) -> None:
        self.query = self.query.with_search(query)

    def set_sort(self, column: str | None, *, descending: bool = False) -> None:
        self.query = self.query.with_sort(SortSpec(column, descending) if column else None)

    def set_show_only_changed(self, enabled: bool) -> None:
        self.query = self.query.with_only_changed(enabled)

    def view(self) -> list[ViewRow]:
        return derive_view(self.dataset, self.query, logger=self.logger)

    def unique_values(self) -> dict[str, list[str]]:
        return unique_values(self.dataset.rows, self.headers, cap=self.settings.unique_values_cap)

    def is_changed(self, row: Row | ViewRow) -> bool:
        target = row.row if isinstance(row, ViewRow) else row
        return self.dataset.is_changed(target.row_index, target)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def image_for(self, row: Row | ViewRow) -> str | None:
        target = row.row if isinstance(row, ViewRow) else row
        return resolve_image(target, self.assets, self.headers)

    def uploader(self, upload_one: UploadFn, *, images_only: bool = True) -> UploadScheduler:
        return UploadScheduler(
            upload_one,
            self.assets,
            concurrency=self.settings.upload_concurrency,
            flush_threshold=self.settings.upload_flush_threshold,
            accept=accepts_image if images_only else None,
            logger=self.logger,
        )

    async def upload_assets(
        self,
        files: Iterable[Any],
        upload_one: UploadFn,
        *,
        images_only: bool = True,
    ) -> UploadProgress:
        return await self.uploader(upload_one, images_only=images_only).run(files)


__all__ = ["CatalogSession"]
