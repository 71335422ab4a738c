from __future__ import annotations

from pathlib import Path

import pytest

from catalog_engine.assets import AssetMap, accepts_image, has_image_link_column, resolve_image
from catalog_engine.assets.uploads import UploadResult, coerce_upload_result, local_file_uploader
from catalog_engine.exceptions import UploadError
from catalog_engine.models import Row

HEADERS = ["ID", "Name", "Image"]


def _row(**values) -> Row:
    return Row(row_index=0, values=values)


def test_exact_key_beats_extension_match() -> None:
    assets = AssetMap({"ariel.jpg": "https://cdn/ariel.jpg", "ariel": "https://cdn/exact"})

    assert resolve_image(_row(ID="", Name="", Image="ariel"), assets, HEADERS) == "https://cdn/exact"


def test_extension_match_uses_first_key_in_map_order() -> None:
    assets = AssetMap({"sku-1.png": "png-url", "sku-1.jpg": "jpg-url", "sku-10.png": "other"})

    assert resolve_image(_row(ID="sku-1"), assets, ["ID"]) == "png-url"


def test_literal_url_is_used_when_no_asset_matches() -> None:
    row = _row(ID="", Name="", Image="https://cdn.example.com/a.png")

    assert resolve_image(row, AssetMap(), HEADERS) == "https://cdn.example.com/a.png"
    assert resolve_image(_row(Image="ftp://cdn.example.com/a.png"), AssetMap(), ["Image"]) is None


def test_first_matching_column_wins() -> None:
    assets = AssetMap({"1.png": "by-id", "tide.png": "by-name"})
    row = _row(ID=1, Name="tide", Image="https://cdn/literal.png")

    assert resolve_image(row, assets, HEADERS) == "by-id"
    assert resolve_image(row, assets, ["Name", "ID"]) == "by-name"
    assert resolve_image(row, AssetMap(), HEADERS) == "https://cdn/literal.png"


def test_blank_cells_never_match() -> None:
    assets = AssetMap({".png": "hidden", "": "empty"})

    assert resolve_image(_row(ID="", Name="", Image=""), assets, HEADERS) is None


def test_resolve_image_accepts_plain_mappings() -> None:
    assets = {"tide.png": "url"}

    assert resolve_image({"Name": "tide"}, assets) == "url"


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        (["ID", "Image"], True),
        (["Image URL"], True),
        (["main_image_link"], True),
        (["Image Notes"], False),
        (["ID", "Name"], False),
    ],
)
def test_has_image_link_column(headers, expected) -> None:
    assert has_image_link_column(headers) is expected


def test_asset_map_merge_swaps_wholesale() -> None:
    assets = AssetMap({"a.png": "1"})
    before = assets.snapshot()

    added = assets.merge({"a.png": "2", "b.png": "3"})

    assert added == 1
    assert dict(assets) == {"a.png": "2", "b.png": "3"}
    assert dict(before) == {"a.png": "1"}
    assert assets.merge({}) == 0


@pytest.mark.parametrize(
    ("name", "expected"),
    [("photo.PNG", True), ("photo.jpeg", True), ("notes.txt", False), ("noext", False)],
)
def test_accepts_image(name, expected) -> None:
    assert accepts_image(Path(name)) is expected


def test_coerce_upload_result_accepts_route_shape() -> None:
    result = coerce_upload_result({"success": True, "filename": "a.png", "url": "/uploads/a.png"})

    assert result == UploadResult(key="a.png", url="/uploads/a.png")


@pytest.mark.parametrize(
    "value",
    [
        {"success": False, "filename": "a.png", "url": "/uploads/a.png"},
        {"key": "a.png", "url": ""},
        {"url": "/uploads/a.png"},
        "a.png",
        None,
    ],
)
def test_coerce_upload_result_rejects_bad_results(value) -> None:
    with pytest.raises(UploadError):
        coerce_upload_result(value)


@pytest.mark.asyncio()
async def test_local_file_uploader_returns_file_uri(tmp_path: Path) -> None:
    image = tmp_path / "tide.png"
    image.write_bytes(b"\x89PNG")
    upload_one = local_file_uploader()

    result = await upload_one(image)

    assert result.key == "tide.png"
    assert result.url == image.resolve().as_uri()

    with pytest.raises(FileNotFoundError):
        await upload_one(tmp_path / "missing.png")
