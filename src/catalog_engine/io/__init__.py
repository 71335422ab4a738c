"""Spreadsheet readers producing raw cell grids."""

from catalog_engine.io.workbook import read_grid

__all__ = ["read_grid"]
