"""Command-line interface for :mod:`catalog_engine`."""

from catalog_engine.cli.app import app, main

__all__ = ["app", "main"]
