"""Shared helpers/options for the catalog CLI."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

import typer
from typer import BadParameter

from catalog_engine.settings import Settings


class LogFormat(str, Enum):
    """Supported log output formats."""

    text = "text"
    ndjson = "ndjson"


LOG_FORMAT_OPTION = typer.Option(
    None,
    "--log-format",
    case_sensitive=False,
    help="Log output format (default from settings).",
)
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Log level name, e.g. DEBUG or WARNING (default from settings).",
)


def resolve_log_level(log_level: Optional[str], default_level: int) -> int:
    """Resolve a string log level to a logging level constant."""
    if not log_level:
        return default_level

    mapping = logging.getLevelNamesMapping()
    resolved = mapping.get(str(log_level).upper())
    if isinstance(resolved, int):
        return resolved

    raise BadParameter(f"Invalid log level: {log_level}", param_hint="log_level")


def resolve_logging(
    *,
    log_format: Optional[LogFormat],
    log_level: Optional[str],
    settings: Settings,
) -> tuple[str, int]:
    effective_format = log_format.value if log_format else settings.log_format
    return effective_format, resolve_log_level(log_level, settings.log_level)


def parse_filter_options(values: Iterable[str]) -> dict[str, set[str]]:
    """Group ``COLUMN=VALUE`` options by column (repeats OR together)."""

    filters: dict[str, set[str]] = {}
    for raw in values:
        column, sep, value = raw.partition("=")
        column = column.strip()
        if not sep or not column:
            raise BadParameter(f"Expected COLUMN=VALUE, got {raw!r}", param_hint="filter")
        filters.setdefault(column, set()).add(value.strip())
    return filters


def collect_image_files(image_dir: Path) -> List[Path]:
    """Files directly inside ``image_dir`` in name order (hidden files skipped)."""

    if not image_dir.is_dir():
        raise BadParameter(f"Not a directory: {image_dir}", param_hint="images")
    return sorted(
        child for child in image_dir.iterdir() if child.is_file() and not child.name.startswith(".")
    )


__all__ = [
    "LOG_FORMAT_OPTION",
    "LOG_LEVEL_OPTION",
    "LogFormat",
    "collect_image_files",
    "parse_filter_options",
    "resolve_log_level",
    "resolve_logging",
]
