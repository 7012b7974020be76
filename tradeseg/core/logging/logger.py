"""JSON line logging on loguru with one trace id per logical operation."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO
from uuid import uuid4

from loguru import logger

from tradeseg.core.logging.config import LogConfig

if TYPE_CHECKING:
    from loguru import Logger, Message, Record

    from tradeseg.core.config import LoggingConfig

_trace_id: ContextVar[str | None] = ContextVar("tradeseg_trace_id", default=None)
_fields: ContextVar[dict[str, Any]] = ContextVar("tradeseg_log_fields", default={})

# promoted from ``context`` to top-level keys of every line
TOP_LEVEL_FIELDS = ("symbol", "stream_id", "error_code", "logger")


def current_trace_id() -> str:
    """Return the active trace id, starting one if none is set."""

    trace_id = _trace_id.get()
    if trace_id is None:
        trace_id = uuid4().hex
        _trace_id.set(trace_id)
    return trace_id


def _patch(record: Record) -> None:
    extra = record["extra"]
    for key, value in _fields.get().items():
        if extra.get(key) is None:
            extra[key] = value
    if not extra.get("trace_id"):
        extra["trace_id"] = current_trace_id()


def _encode(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def render_record(record: Record) -> str:
    """Serialise a loguru record to one JSON document."""

    extra = dict(record["extra"])
    line: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "trace_id": extra.pop("trace_id", None),
    }
    for key in TOP_LEVEL_FIELDS:
        line[key] = extra.pop(key, None)
    if extra:
        line["context"] = extra
    exception = record["exception"]
    if exception is not None and exception.type is not None:
        line["exception"] = f"{exception.type.__name__}: {exception.value}"
    return json.dumps(line, default=_encode)


class _JsonLineSink:
    """Writes each record as a JSON line to a text stream or appends it to a file."""

    def __init__(self, *, stream: TextIO | None = None, path: str | None = None) -> None:
        self._stream = stream
        self._path = Path(path) if path else None
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)

    def __call__(self, message: Message) -> None:
        line = render_record(message.record) + "\n"
        if self._path is not None:
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(line)
            return
        stream = self._stream or sys.stderr
        stream.write(line)
        stream.flush()


def apply_log_config(config: LogConfig) -> LogConfig:
    """Replace every loguru handler with the sinks described by ``config``."""

    handlers: list[dict[str, Any]] = []
    if config.console_output:
        handlers.append({"sink": _JsonLineSink(stream=config.console_stream), "level": config.level})
    if config.file_output:
        handlers.append({"sink": _JsonLineSink(path=config.file_path), "level": config.level})
    logger.configure(handlers=handlers, patcher=_patch, extra=dict(config.extra))
    return config


def configure_logging(level: str = "INFO", **options: Any) -> LogConfig:
    """Configure JSON logging, e.g. ``configure_logging("DEBUG", console_stream=buf)``."""

    return apply_log_config(LogConfig(level=level, **options))


def configure_from_settings(settings: LoggingConfig, *, level: str | None = None) -> LogConfig:
    """Configure logging from the engine settings; ``level`` wins over the configured one."""

    return apply_log_config(LogConfig.from_settings(settings, level=level))


def get_logger(name: str | None = None) -> Logger:
    """Return the shared logger, bound to ``name`` when given."""

    return logger.bind(logger=name) if name else logger


@contextmanager
def log_context(*, trace_id: str | None = None, **fields: Any) -> Iterator[str]:
    """Attach ``fields`` and a fresh trace id to every record logged inside the block."""

    fields_token = _fields.set({**_fields.get(), **fields})
    active = trace_id or uuid4().hex
    trace_token = _trace_id.set(active)
    try:
        yield active
    finally:
        _trace_id.reset(trace_token)
        _fields.reset(fields_token)


configure_logging()


__all__ = [
    "TOP_LEVEL_FIELDS",
    "apply_log_config",
    "configure_from_settings",
    "configure_logging",
    "current_trace_id",
    "get_logger",
    "log_context",
    "logger",
    "render_record",
]
