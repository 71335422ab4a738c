"""Heuristic grid parsing."""

from catalog_engine.parsing.grid import detect_group_row, detect_header_row, parse_grid, sanitize_header

__all__ = ["detect_group_row", "detect_header_row", "parse_grid", "sanitize_header"]
