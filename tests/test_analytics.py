from __future__ import annotations

import polars as pl

from catalog_engine.analytics import (
    POSITION_COLUMN,
    ValueCount,
    group_columns,
    unique_values,
    value_distribution,
    view_frame,
)
from catalog_engine.dataset import Dataset
from catalog_engine.models import ColumnMetadata, ParseResult, Row
from catalog_engine.query import QueryState, SortSpec, derive_view


def test_unique_values_are_sorted_and_skip_blanks(catalog_dataset: Dataset) -> None:
    values = unique_values(catalog_dataset.rows, catalog_dataset.headers)

    assert values["Brand"] == ["Ariel", "Febreze"]
    assert values["Size"] == ["10", "5"]
    assert values["ID"] == ["1", "2", "3"]


def test_unique_values_omit_empty_columns_and_respect_cap() -> None:
    rows = [Row(row_index=idx, values={"Code": f"C{idx:03d}", "Notes": ""}) for idx in range(300)]

    values = unique_values(rows, ["Code", "Notes"], cap=200)

    assert "Notes" not in values
    assert len(values["Code"]) == 200
    assert values["Code"][0] == "C000"
    assert values["Code"][-1] == "C199"


def test_value_distribution_counts_blanks_as_na() -> None:
    rows = [
        Row(row_index=idx, values={"Brand": brand})
        for idx, brand in enumerate(["Ariel", "Febreze", "", "Ariel"])
    ]

    assert value_distribution(rows, "Brand") == [
        ValueCount(name="Ariel", value=2, percentage=50.0),
        ValueCount(name="Febreze", value=1, percentage=25.0),
        ValueCount(name="N/A", value=1, percentage=25.0),
    ]
    assert value_distribution([], "Brand") == []


def test_value_distribution_accepts_a_view(catalog_dataset: Dataset) -> None:
    view = derive_view(catalog_dataset, QueryState().with_search("a"))

    names = [entry.name for entry in value_distribution(view, "Brand")]

    assert names == ["Ariel", "Febreze", "N/A"]


def test_view_frame_keeps_positions_and_text_values(catalog_dataset: Dataset) -> None:
    view = derive_view(catalog_dataset, QueryState(sort=SortSpec("Size")))

    frame = view_frame(view, catalog_dataset.headers)

    assert frame.columns == [POSITION_COLUMN, "ID", "Name", "Brand", "Size", "Image"]
    assert frame[POSITION_COLUMN].to_list() == [1, 0, 2]
    assert frame["ID"].dtype == pl.Utf8
    assert frame["ID"].to_list() == ["2", "1", "3"]


def test_view_frame_collapses_duplicate_headers() -> None:
    dataset = Dataset()
    dataset.load(ParseResult(headers=["Name", "Name"], rows=[{"Name": "x"}]))

    frame = view_frame(derive_view(dataset), dataset.headers)

    assert frame.columns == [POSITION_COLUMN, "Name"]


def test_group_columns_preserves_order_and_excludes_identity() -> None:
    metadata = [
        ColumnMetadata("ID", "Identification"),
        ColumnMetadata("Name", "Identification"),
        ColumnMetadata("Brand", "Details"),
        ColumnMetadata("Size", "Details"),
        ColumnMetadata("Image", "Media"),
    ]

    assert group_columns(metadata) == {"Details": ["Brand", "Size"], "Media": ["Image"]}
    assert list(group_columns(metadata, exclude=())) == ["Identification", "Details", "Media"]
