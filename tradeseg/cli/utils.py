"""Plumbing shared by the CLI commands: options, engine access, output and errors."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, NoReturn, TextIO, TypeVar

import typer

from tradeseg.core.config import ConfigManager
from tradeseg.core.engine import SegmentEngine
from tradeseg.core.exceptions import (
    ClassificationError,
    ConfigurationError,
    ContinuityError,
    InsufficientPointsError,
    MalformedFeedbackError,
    SegmentNotFoundError,
    StorageError,
    StreamNotFoundError,
    StreamStateError,
    TradeSegError,
)

from .constants import (
    CONTINUITY_EXIT_CODE,
    NOT_FOUND_EXIT_CODE,
    STORAGE_EXIT_CODE,
    STREAM_STATE_EXIT_CODE,
    SYSTEM_EXIT_CODE,
    VALIDATION_EXIT_CODE,
)
from .formatters import OutputFormatter, create_formatter

T = TypeVar("T")


@dataclass(slots=True)
class CLIOptions:
    """Global options stored on the Typer context by the app callback."""

    format: str = "table"
    output_path: Path | None = None
    no_color: bool = False
    database: str | None = None

    @classmethod
    def from_context(cls, ctx: typer.Context) -> CLIOptions:
        values = ctx.ensure_object(dict)
        return cls(
            format=values.get("format", "table"),
            output_path=values.get("output_path"),
            no_color=bool(values.get("no_color")),
            database=values.get("database"),
        )


def get_engine(database: str | None = None) -> SegmentEngine:
    """Build the engine the commands run against; tests replace this hook."""

    config = ConfigManager().get_config()
    if database:
        config.storage.database = database
    return SegmentEngine.from_config(config)


def call_engine(ctx: typer.Context, action: Callable[[SegmentEngine], T]) -> T:
    """Run ``action`` on a fresh engine; engine errors end the command via :func:`fail`."""

    try:
        engine = get_engine(CLIOptions.from_context(ctx).database)
        try:
            return action(engine)
        finally:
            engine.close()
    except TradeSegError as error:
        fail(error)


@contextmanager
def command_output(ctx: typer.Context) -> Iterator[tuple[OutputFormatter, TextIO]]:
    """Yield the selected formatter and the stream it writes to (``--output`` or stdout)."""

    options = CLIOptions.from_context(ctx)
    formatter = create_formatter(options.format, no_color=options.no_color)
    if options.output_path is None:
        yield formatter, sys.stdout
        return
    try:
        handle = open(options.output_path, "w", encoding="utf-8")
    except OSError as exc:
        emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    with handle:
        yield formatter, handle


def _jsonable(value: object) -> object:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    return str(value)


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Write ``{"code", "message", "details"}`` as one JSON line on stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = {key: _jsonable(value) for key, value in details.items()}
    typer.echo(json.dumps(payload, ensure_ascii=False), err=True)


# first match wins; subclasses before their bases
EXIT_CODES: tuple[tuple[type[TradeSegError], int], ...] = (
    (ContinuityError, CONTINUITY_EXIT_CODE),
    (SegmentNotFoundError, NOT_FOUND_EXIT_CODE),
    (StreamNotFoundError, NOT_FOUND_EXIT_CODE),
    (StreamStateError, STREAM_STATE_EXIT_CODE),
    (ClassificationError, VALIDATION_EXIT_CODE),
    (InsufficientPointsError, VALIDATION_EXIT_CODE),
    (MalformedFeedbackError, VALIDATION_EXIT_CODE),
    (ConfigurationError, VALIDATION_EXIT_CODE),
    (StorageError, STORAGE_EXIT_CODE),
)


def exit_code_for(error: TradeSegError) -> int:
    return next((code for kind, code in EXIT_CODES if isinstance(error, kind)), SYSTEM_EXIT_CODE)


def fail(error: TradeSegError) -> NoReturn:
    """Report ``error`` on stderr and exit with its mapped code."""

    emit_error(error.message, error.error_code, details=error.details)
    raise typer.Exit(code=exit_code_for(error)) from error


__all__ = [
    "CLIOptions",
    "EXIT_CODES",
    "call_engine",
    "command_output",
    "emit_error",
    "exit_code_for",
    "fail",
    "get_engine",
]
