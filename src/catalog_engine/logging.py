"""Structured, session-scoped logging for the catalog engine (stdlib logging + Pydantic v2).

Every record is a ``catalog.*`` event:

    {
        "event_id": "<uuid4 hex>",
        "session_id": "<uuid4 hex>",
        "timestamp": "<RFC3339 UTC>",
        "level": "debug" | "info" | "warning" | ...,
        "event": "catalog.<component>.<name>",
        "message": "<human-readable message>",
        "data": { ... validated payload ... }
    }

Events must be registered in :data:`CATALOG_EVENT_SCHEMAS`; registered payload
models are validated strictly before anything is written.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import sys
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, ValidationError

CATALOG_NAMESPACE = "catalog"

VALID_LOG_FORMATS = {"text", "ndjson", "json"}  # "json" is an alias for ndjson
DEFAULT_EVENT = f"{CATALOG_NAMESPACE}.log"  # plain log lines

PayloadModel: TypeAlias = type[BaseModel] | None


# ---------------------------------------------------------------------------
# Event payload schemas
# ---------------------------------------------------------------------------

class StrictPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SourceReadPayload(StrictPayload):
    path: str
    sheet_name: str | None = None
    row_count: int


class HeaderDetectedPayload(StrictPayload):
    header_row_index: int
    group_row_index: int | None = None
    matched_keywords: list[str]
    fallback: bool


class DuplicateHeadersPayload(StrictPayload):
    headers: list[str]


class ParseCompletedPayload(StrictPayload):
    header_row_index: int
    column_count: int
    row_count: int
    has_group_row: bool


class DatasetLoadedPayload(StrictPayload):
    row_count: int
    column_count: int


class DatasetMutatedPayload(StrictPayload):
    operation: str
    row_count: int
    affected: int
    history_depth: int


class DatasetUndoPayload(StrictPayload):
    row_count: int
    history_depth: int


class ViewDerivedPayload(StrictPayload):
    source_rows: int
    view_rows: int
    filter_columns: int
    search: bool
    sorted: bool
    only_changed: bool


class UploadStartedPayload(StrictPayload):
    total: int
    skipped: int
    concurrency: int


class UploadFailedPayload(StrictPayload):
    file: str
    error: str


class UploadFlushedPayload(StrictPayload):
    entries: int
    asset_count: int


class UploadCompletedPayload(StrictPayload):
    total: int
    completed: int
    failed: int


# Value None: known event with a freeform payload.
CATALOG_EVENT_SCHEMAS: dict[str, PayloadModel] = {
    DEFAULT_EVENT: None,
    "catalog.source.read": SourceReadPayload,
    "catalog.parser.header_detected": HeaderDetectedPayload,
    "catalog.parser.duplicate_headers": DuplicateHeadersPayload,
    "catalog.parser.completed": ParseCompletedPayload,
    "catalog.dataset.loaded": DatasetLoadedPayload,
    "catalog.dataset.mutated": DatasetMutatedPayload,
    "catalog.dataset.undo": DatasetUndoPayload,
    "catalog.query.view_derived": ViewDerivedPayload,
    "catalog.upload.started": UploadStartedPayload,
    "catalog.upload.file_failed": UploadFailedPayload,
    "catalog.upload.flushed": UploadFlushedPayload,
    "catalog.upload.completed": UploadCompletedPayload,
}


def qualify_event_name(name: str) -> str:
    """``"upload.started"`` -> ``"catalog.upload.started"``; already-qualified names pass through."""

    name = (name or "").strip().strip(".")
    if not name:
        return f"{CATALOG_NAMESPACE}.invalid_event"
    if name == CATALOG_NAMESPACE or name.startswith(f"{CATALOG_NAMESPACE}."):
        return name
    return f"{CATALOG_NAMESPACE}.{name}"


def _validate_payload(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    if event not in CATALOG_EVENT_SCHEMAS:
        raise ValueError(f"Unknown catalog event '{event}' (add to CATALOG_EVENT_SCHEMAS)")
    schema = CATALOG_EVENT_SCHEMAS[event]
    if schema is None:
        return payload
    try:
        model = schema.model_validate(payload, strict=True)
    except ValidationError as e:
        raise ValueError(f"Invalid payload for event '{event}': {e}") from e
    return model.model_dump(mode="python", exclude_none=True)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

def _event_record(record: logging.LogRecord) -> dict[str, Any]:
    out: dict[str, Any] = {
        "event_id": str(getattr(record, "event_id", None) or uuid.uuid4().hex),
        "session_id": str(getattr(record, "session_id", None) or ""),
        "timestamp": (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        ),
        "level": record.levelname.lower(),
        "event": str(getattr(record, "event", None) or DEFAULT_EVENT),
        "message": record.getMessage(),
    }
    data = getattr(record, "data", None)
    if isinstance(data, Mapping) and data:
        out["data"] = dict(data)
    return out


class NdjsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        return json.dumps(_event_record(record), ensure_ascii=False, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    max_fields = 8

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        entry = _event_record(record)
        line = f"[{entry['timestamp']}] {entry['level'].upper()} {entry['event']}"
        if entry["message"] and entry["message"] != entry["event"]:
            line += f": {entry['message']}"

        data = entry.get("data") or {}
        if data:
            items = [f"{key}={_truncate(data[key])}" for key in sorted(data)[: self.max_fields]]
            if len(data) > self.max_fields:
                items.append("…")
            line += " (" + ", ".join(items) + ")"
        return line


def _truncate(value: Any, *, max_len: int = 120) -> str:
    text = str(value)
    return text if len(text) <= max_len else (text[: max_len - 1] + "…")


# ---------------------------------------------------------------------------
# Loggers
# ---------------------------------------------------------------------------

class SessionLogger(logging.LoggerAdapter):
    """Stamps records with the session id and emits validated catalog events."""

    def __init__(self, logger: logging.Logger, *, session_id: str | None = None) -> None:
        self._session_id = session_id or uuid.uuid4().hex
        super().__init__(logger, {"session_id": self._session_id})

    @property
    def session_id(self) -> str:
        return self._session_id

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        extra = dict(kwargs.pop("extra", None) or {})
        extra["session_id"] = self._session_id
        extra.setdefault("event_id", uuid.uuid4().hex)
        extra.setdefault("event", DEFAULT_EVENT)
        kwargs["extra"] = extra
        return msg, kwargs

    def event(
        self,
        name: str,
        *,
        message: str | None = None,
        level: int = logging.INFO,
        **fields: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return

        event = qualify_event_name(name)
        payload = _validate_payload(event, dict(fields))

        extra: dict[str, Any] = {"event": event}
        if payload:
            extra["data"] = payload
        self.log(level, message or event, extra=extra)


class NullLogger(SessionLogger):
    """Discards everything; falsy so callers can skip building expensive messages."""

    def __init__(self) -> None:
        base_logger = logging.Logger("catalog_engine.null")
        base_logger.addHandler(logging.NullHandler())
        base_logger.propagate = False
        base_logger.disabled = True
        super().__init__(base_logger, session_id="null")

    def __bool__(self) -> bool:
        return False


@dataclass
class SessionLogContext:
    logger: SessionLogger
    _base_logger: logging.Logger
    _handlers: list[logging.Handler]

    def close(self) -> None:
        for h in list(self._handlers):
            self._base_logger.removeHandler(h)
            h.close()

    def __enter__(self) -> "SessionLogContext":
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()


def create_session_logger_context(
    *,
    log_format: str = "text",
    log_level: int = logging.INFO,
    enable_console_logging: bool = True,
    log_file: Path | None = None,
) -> SessionLogContext:
    fmt = (log_format or "text").strip().lower()
    if fmt not in VALID_LOG_FORMATS:
        raise ValueError("log_format must be 'text' or 'ndjson' (or 'json')")
    formatter: logging.Formatter = TextFormatter() if fmt == "text" else NdjsonFormatter()

    handlers: list[logging.Handler] = []
    if enable_console_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    session_id = uuid.uuid4().hex
    base_logger = logging.getLogger(f"catalog_engine.session.{session_id}")
    base_logger.setLevel(log_level)
    base_logger.handlers.clear()
    base_logger.propagate = False
    for h in handlers:
        h.setLevel(log_level)
        h.setFormatter(formatter)
        base_logger.addHandler(h)

    logger = SessionLogger(base_logger, session_id=session_id)
    return SessionLogContext(logger=logger, _base_logger=base_logger, _handlers=handlers)


__all__ = [
    "CATALOG_EVENT_SCHEMAS",
    "CATALOG_NAMESPACE",
    "DEFAULT_EVENT",
    "VALID_LOG_FORMATS",
    "NdjsonFormatter",
    "NullLogger",
    "SessionLogContext",
    "SessionLogger",
    "TextFormatter",
    "create_session_logger_context",
    "qualify_event_name",
]
