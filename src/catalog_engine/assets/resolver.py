"""Match row cell values to image URLs."""

from __future__ import annotations

from typing import Iterable, Mapping

from catalog_engine.models import Row, stringify

URL_PREFIXES = ("http://", "https://")


def _match_value(text: str, asset_map: Mapping[str, str]) -> str | None:
    url = asset_map.get(text)
    if url:
        return url

    # Cell holds the bare name, asset key carries an extension ("sku123" -> "sku123.jpg").
    stem = f"{text}."
    for key, candidate in asset_map.items():
        if key.startswith(stem):
            return candidate

    if text.startswith(URL_PREFIXES):
        return text
    return None


def resolve_image(
    row: Row | Mapping[str, object],
    asset_map: Mapping[str, str],
    headers: Iterable[str] | None = None,
) -> str | None:
    """Return the image URL for the first column whose value matches.

    Per column the exact key wins over an extension match, which wins over
    a literal ``http(s)://`` value. Blank cells never match.
    """

    values = row.values if isinstance(row, Row) else row
    columns = headers if headers is not None else values.keys()
    for column in columns:
        text = stringify(values.get(column))
        if not text:
            continue
        url = _match_value(text, asset_map)
        if url is not None:
            return url
    return None


def has_image_link_column(headers: Iterable[str]) -> bool:
    """True when some header looks like it carries image links."""

    for header in headers:
        lowered = header.lower()
        if lowered == "image":
            return True
        if "image" in lowered and any(tag in lowered for tag in ("link", "url", "src")):
            return True
    return False


__all__ = ["URL_PREFIXES", "has_image_link_column", "resolve_image"]
