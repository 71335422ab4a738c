"""CLI entrypoint for :mod:`catalog_engine`.

- `inspect` - parse a spreadsheet and print the derived view.
- `version` - print the engine version.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from catalog_engine import __version__
from catalog_engine.analytics import group_columns, value_distribution
from catalog_engine.assets.uploads import local_file_uploader
from catalog_engine.cli.common import (
    LOG_FORMAT_OPTION,
    LOG_LEVEL_OPTION,
    LogFormat,
    collect_image_files,
    parse_filter_options,
    resolve_logging,
)
from catalog_engine.exceptions import CatalogEngineError
from catalog_engine.logging import create_session_logger_context
from catalog_engine.models import stringify
from catalog_engine.query.state import HAS_VALUE
from catalog_engine.session import CatalogSession
from catalog_engine.settings import Settings

app = typer.Typer(
    help=(
        "Catalog engine: inspect product spreadsheets.\n\n"
        "- **inspect** - detect headers, then search / filter / sort the rows\n"
        "- **version** - show engine version"
    ),
    no_args_is_help=True,
    rich_markup_mode="markdown",
)


def _print_columns(session: CatalogSession) -> None:
    typer.echo(f"Columns ({len(session.headers)}):")
    for group, headers in group_columns(session.column_metadata, exclude=()).items():
        typer.echo(f"  [{group}] " + ", ".join(headers))


def _print_view(session: CatalogSession, *, limit: int) -> None:
    view = session.view()
    typer.echo(f"Rows: {len(view)} of {len(session.rows)}")
    if not view:
        return
    typer.echo("\t".join(["#", *session.headers, "image"]))
    for item in view[:limit]:
        cells = [stringify(item.get(header)) for header in session.headers]
        typer.echo("\t".join([str(item.position), *cells, session.image_for(item) or ""]))
    if len(view) > limit:
        typer.echo(f"... {len(view) - limit} more")


@app.command("inspect")
def inspect_command(
    source: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Spreadsheet to load (.xlsx, .xlsm or .csv; first sheet only).",
    ),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Free text or COLUMN:value query."),
    filters: List[str] = typer.Option([], "--filter", "-f", help="COLUMN=VALUE; repeat to accept more values."),
    has_value: List[str] = typer.Option([], "--has-value", help="Only rows where COLUMN is non-empty."),
    sort: Optional[str] = typer.Option(None, "--sort", help="Column to sort by (blanks last)."),
    descending: bool = typer.Option(False, "--desc", help="Sort descending."),
    images: Optional[Path] = typer.Option(
        None,
        "--images",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        help="Directory of image files to match against row values.",
    ),
    stats: Optional[str] = typer.Option(None, "--stats", help="Print the value distribution of COLUMN."),
    limit: int = typer.Option(20, "--limit", min=1, help="Maximum rows to print."),
    log_format: Optional[LogFormat] = LOG_FORMAT_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Load SOURCE and print its columns and the derived view."""

    settings = Settings()
    effective_format, effective_level = resolve_logging(
        log_format=log_format,
        log_level=log_level,
        settings=settings,
    )
    column_filters = parse_filter_options(filters)

    with create_session_logger_context(log_format=effective_format, log_level=effective_level) as log_ctx:
        session = CatalogSession(settings=settings, logger=log_ctx.logger)
        try:
            parsed = session.load_file(source)
        except CatalogEngineError as exc:
            typer.echo(f"error: {exc}")
            raise typer.Exit(code=1) from exc

        if parsed.is_empty:
            typer.echo("No data found.")
            return

        if images is not None:
            progress = asyncio.run(session.upload_assets(collect_image_files(images), local_file_uploader()))
            typer.echo(f"Images: {progress.completed} registered, {progress.failed} failed")

        for column, values in column_filters.items():
            session.set_filter(column, values)
        for column in has_value:
            session.set_filter(column, {HAS_VALUE})
        if search:
            session.set_search(search)
        if sort:
            session.set_sort(sort, descending=descending)

        _print_columns(session)
        _print_view(session, limit=limit)

        if stats:
            typer.echo(f"Distribution of {stats}:")
            for entry in value_distribution(session.view(), stats):
                typer.echo(f"  {entry.name}: {entry.value} ({entry.percentage}%)")


@app.command("version")
def version_command() -> None:
    """Print the engine version."""
    typer.echo(__version__)


def main() -> None:
    """Entrypoint used by console scripts and `python -m catalog_engine`."""
    app()


__all__ = ["app", "main"]
