"""Settings for catalog_engine using pydantic-settings.

Engine-level limits and toggles are loaded from (in precedence order):
init kwargs > env vars > .env file > settings.toml > defaults.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HEADER_KEYWORDS: tuple[str, ...] = ("id", "name", "brand", "product", "sku", "ean", "upc")


def _toml_settings_source() -> dict[str, Any]:
    """Load settings from ``settings.toml`` if present.

    Either top-level keys or a nested ``[catalog_engine]`` table are accepted.
    """

    path = Path("settings.toml")
    if not path.exists():
        return {}

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}

    if not isinstance(data, dict):
        return {}

    nested = data.get("catalog_engine")
    if isinstance(nested, dict):
        return nested
    return data


class Settings(BaseSettings):
    """Runtime settings for the engine.

    Defaults match the interactive product behaviour.  Callers can override via
    init kwargs, environment variables (``CATALOG_ENGINE_*``), a ``.env`` file,
    or an optional ``settings.toml``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_ENGINE_",
        env_file=".env",
        extra="ignore",
    )

    # Parsing
    header_scan_rows: int = Field(
        default=10,
        ge=1,
        description="Number of leading rows inspected when looking for the header row.",
    )
    header_keywords: tuple[str, ...] = Field(
        default=DEFAULT_HEADER_KEYWORDS,
        description="Identifier-like words that mark a row as the header row (case-insensitive).",
    )

    # Editing
    history_limit: int = Field(
        default=50,
        ge=1,
        description="Maximum number of undo snapshots retained; the oldest is dropped first.",
    )

    # Uploads
    upload_concurrency: int = Field(
        default=5,
        ge=1,
        description="Maximum number of uploads in flight at once.",
    )
    upload_flush_threshold: int = Field(
        default=10,
        ge=1,
        description="Buffered upload results are published to the asset map once this many accumulate.",
    )

    # Analytics
    unique_values_cap: int = Field(
        default=200,
        ge=1,
        description="Maximum number of distinct values collected per column for filter suggestions.",
    )

    # Logging
    log_format: Literal["text", "ndjson"] = Field(default="text")
    log_level: int = Field(default=logging.INFO)

    # Source discovery
    supported_file_extensions: tuple[str, ...] = Field(
        default=(".xlsx", ".xlsm", ".csv"),
        description="Source file extensions accepted by the reader (case-insensitive).",
    )

    @field_validator("header_keywords")
    @classmethod
    def _normalize_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(dict.fromkeys(k.strip().lower() for k in v if k and k.strip()))
        if not cleaned:
            raise ValueError("header_keywords must contain at least one keyword")
        return cleaned

    @field_validator("supported_file_extensions")
    @classmethod
    def _normalize_extensions(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v if ext)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):  # type: ignore[override]
        toml_source = lambda: _toml_settings_source()
        # Precedence: init > env vars > .env > TOML > defaults
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            toml_source,
            file_secret_settings,
        )


__all__ = ["DEFAULT_HEADER_KEYWORDS", "Settings"]
