"""Public API for :mod:`catalog_engine`."""

from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING
import tomllib

if TYPE_CHECKING:
    from catalog_engine.assets import AssetMap, UploadScheduler, resolve_image
    from catalog_engine.dataset import Dataset
    from catalog_engine.models import ColumnMetadata, ParseResult, Row, ViewRow
    from catalog_engine.parsing import parse_grid
    from catalog_engine.query import HAS_VALUE, QueryState, SortSpec, derive_view
    from catalog_engine.session import CatalogSession
    from catalog_engine.settings import Settings


def _pyproject_version() -> str | None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    try:
        parsed = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        version = parsed.get("project", {}).get("version")
        if isinstance(version, str) and version:
            return version
    except (FileNotFoundError, OSError, tomllib.TOMLDecodeError):
        return None
    return None


def _resolve_version() -> str:
    version = _pyproject_version()
    if version is not None:
        return version

    try:
        return metadata.version("catalog-engine")
    except metadata.PackageNotFoundError:  # pragma: no cover
        return "unknown"


__version__ = _resolve_version()

_EXPORTS = {
    "AssetMap": ("catalog_engine.assets", "AssetMap"),
    "CatalogSession": ("catalog_engine.session", "CatalogSession"),
    "ColumnMetadata": ("catalog_engine.models", "ColumnMetadata"),
    "Dataset": ("catalog_engine.dataset", "Dataset"),
    "HAS_VALUE": ("catalog_engine.query", "HAS_VALUE"),
    "ParseResult": ("catalog_engine.models", "ParseResult"),
    "QueryState": ("catalog_engine.query", "QueryState"),
    "Row": ("catalog_engine.models", "Row"),
    "Settings": ("catalog_engine.settings", "Settings"),
    "SortSpec": ("catalog_engine.query", "SortSpec"),
    "UploadScheduler": ("catalog_engine.assets", "UploadScheduler"),
    "ViewRow": ("catalog_engine.models", "ViewRow"),
    "derive_view": ("catalog_engine.query", "derive_view"),
    "parse_grid": ("catalog_engine.parsing", "parse_grid"),
    "resolve_image": ("catalog_engine.assets", "resolve_image"),
}


def __getattr__(name: str):
    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = __import__(module_name, fromlist=[attr_name])
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_EXPORTS.keys()))


__all__ = [
    "AssetMap",
    "CatalogSession",
    "ColumnMetadata",
    "Dataset",
    "HAS_VALUE",
    "ParseResult",
    "QueryState",
    "Row",
    "Settings",
    "SortSpec",
    "UploadScheduler",
    "ViewRow",
    "derive_view",
    "parse_grid",
    "resolve_image",
    "__version__",
]
