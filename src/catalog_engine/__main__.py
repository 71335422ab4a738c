"""Module entrypoint for `python -m catalog_engine`."""

from catalog_engine.cli.app import main


if __name__ == "__main__":  # pragma: no cover - exercised via CLI tests
    main()
