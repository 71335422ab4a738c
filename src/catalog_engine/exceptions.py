"""Engine error hierarchy."""

from __future__ import annotations


class CatalogEngineError(Exception):
    """Base class for catalog engine exceptions."""


class InputError(CatalogEngineError):
    """Raised when source files or sheets are unusable."""


class InvalidIndexError(CatalogEngineError, IndexError):
    """Raised when a mutator is given a row position outside the live rows."""

    def __init__(self, position: int, size: int) -> None:
        self.position = position
        self.size = size
        super().__init__(f"Row position {position} is out of range for {size} row(s)")


class UploadError(CatalogEngineError):
    """Raised when an upload returns an unusable result or the batch stops early."""


__all__ = [
    "CatalogEngineError",
    "InputError",
    "InvalidIndexError",
    "UploadError",
]
