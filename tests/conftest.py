from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import pytest

from catalog_engine.dataset import Dataset
from catalog_engine.logging import SessionLogger
from catalog_engine.parsing import parse_grid
from fixtures.sample_inputs import CATALOG_GRID


class _RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@dataclass
class RecordedEvents:
    logger: SessionLogger
    records: list[logging.LogRecord] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [record.event for record in self.records]

    def data_for(self, name: str) -> list[dict[str, Any]]:
        return [getattr(record, "data", {}) for record in self.records if record.event == name]


@pytest.fixture
def catalog_grid() -> list[list[Any]]:
    return [list(row) for row in CATALOG_GRID]


@pytest.fixture
def catalog_dataset(catalog_grid) -> Dataset:
    dataset = Dataset()
    dataset.load(parse_grid(catalog_grid))
    return dataset


@pytest.fixture
def recorded_events():
    base = logging.getLogger(f"catalog_engine.test.{uuid.uuid4().hex}")
    base.setLevel(logging.DEBUG)
    base.propagate = False
    handler = _RecordingHandler()
    base.addHandler(handler)
    try:
        yield RecordedEvents(logger=SessionLogger(base), records=handler.records)
    finally:
        base.removeHandler(handler)
