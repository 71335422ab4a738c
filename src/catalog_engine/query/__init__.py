"""View derivation: changed-only, search, column filters and sort."""

from catalog_engine.query.pipeline import derive_view, matching_positions, resolve_search_column, row_matches_filters
from catalog_engine.query.sorting import natural_key, sort_blanks_last
from catalog_engine.query.state import HAS_VALUE, FilterState, QueryState, SortSpec

__all__ = [
    "FilterState",
    "HAS_VALUE",
    "QueryState",
    "SortSpec",
    "derive_view",
    "matching_positions",
    "natural_key",
    "resolve_search_column",
    "row_matches_filters",
    "sort_blanks_last",
]
