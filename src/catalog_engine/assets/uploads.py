"""Upload primitive contract and the local-file implementation used by the CLI."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from catalog_engine.exceptions import UploadError

T = TypeVar("T")


class UploadResult(BaseModel):
    """What a host upload primitive reports for one stored file.

    Accepts the upload route's ``{"success": true, "filename": ..., "url": ...}``
    shape as well as a plain ``{"key": ..., "url": ...}``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    key: str = Field(min_length=1, validation_alias=AliasChoices("key", "filename"))
    url: str = Field(min_length=1)
    success: bool = True

    @model_validator(mode="after")
    def _require_success(self) -> "UploadResult":
        if not self.success:
            raise ValueError("upload reported success=false")
        return self


UploadFn = Callable[[T], Awaitable[UploadResult | Mapping[str, Any]]]


def coerce_upload_result(value: UploadResult | Mapping[str, Any] | Any) -> UploadResult:
    if isinstance(value, UploadResult):
        return value
    if not isinstance(value, Mapping):
        raise UploadError(f"Upload returned {type(value).__name__}, expected a mapping")
    try:
        return UploadResult.model_validate(value)
    except ValidationError as exc:
        raise UploadError(f"Upload returned an invalid result: {exc}") from exc


def accepts_image(path: Path | str) -> bool:
    """True for files whose name maps to an ``image/*`` MIME type."""

    mime, _ = mimetypes.guess_type(str(path))
    return bool(mime) and mime.startswith("image/")


def local_file_uploader() -> Callable[[Path], Awaitable[UploadResult]]:
    """Upload primitive that registers files in place under their ``file://`` URI."""

    async def upload_one(path: Path) -> UploadResult:
        resolved = await asyncio.to_thread(Path(path).resolve, True)
        if not resolved.is_file():
            raise UploadError(f"Not a file: {resolved}")
        return UploadResult(key=resolved.name, url=resolved.as_uri())

    return upload_one


__all__ = [
    "UploadFn",
    "UploadResult",
    "accepts_image",
    "coerce_upload_result",
    "local_file_uploader",
]
