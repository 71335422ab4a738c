"""Image asset registry, resolution and uploads."""

from catalog_engine.assets.asset_map import AssetMap
from catalog_engine.assets.resolver import has_image_link_column, resolve_image
from catalog_engine.assets.scheduler import UploadProgress, UploadScheduler
from catalog_engine.assets.uploads import UploadResult, accepts_image, local_file_uploader

__all__ = [
    "AssetMap",
    "UploadProgress",
    "UploadResult",
    "UploadScheduler",
    "accepts_image",
    "has_image_link_column",
    "local_file_uploader",
    "resolve_image",
]
