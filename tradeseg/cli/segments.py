"""Ingestion, listing, classification and export commands."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

import typer
from pydantic import ValidationError

from tradeseg.core.models import AnalysisSegment, RawSeries
from tradeseg.core.services.classification import UNSET, MutationStatus
from tradeseg.core.services.continuity import ContinuityIssueCode
from tradeseg.core.services.export import write_classified_csv

from .constants import CONTINUITY_EXIT_CODE, NOT_FOUND_EXIT_CODE, VALIDATION_EXIT_CODE
from .utils import call_engine, command_output, emit_error

SUMMARY_COLUMNS = ["metric", "value"]
SEGMENT_COLUMNS = [
    "id",
    "stream_id",
    "segment_start",
    "segment_end",
    "point_count",
    "min_price",
    "average_price",
    "max_price",
    "x0",
    "trend_direction",
    "schema_type",
    "invalid",
]


def register(app: typer.Typer) -> None:
    """Register segment commands on the provided application."""

    app.command("ingest")(ingest_command)
    app.command("segments")(segments_command)
    app.command("classify")(classify_command)
    app.command("feedback")(feedback_command)
    app.command("manual-segment")(manual_segment_command)
    app.command("export-csv")(export_csv_command)


class DuplicateTimestampKey(ValueError):
    """The document repeats a key; for bar maps that key is a timestamp."""

    def __init__(self, key: str) -> None:
        super().__init__(f"duplicate timestamp '{key}'")
        self.key = key


def _unique_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    document: dict[str, Any] = {}
    for key, value in pairs:
        if key in document:
            raise DuplicateTimestampKey(key)
        document[key] = value
    return document


def load_series(path: Path) -> RawSeries:
    """Read a ``{timestamp: {open, high, low, close, volume}}`` JSON document.

    A top-level ``"Time Series (1min)"`` style wrapper is unwrapped. A key
    repeated anywhere in the document raises :class:`DuplicateTimestampKey`.
    """

    with open(path, encoding="utf-8") as handle:
        document: Any = json.load(handle, object_pairs_hook=_unique_keys)
    if isinstance(document, dict):
        wrapped = [key for key in document if key.lower().startswith("time series")]
        if wrapped:
            document = document[wrapped[0]]
    if not isinstance(document, dict):
        raise ValueError("expected a JSON object keyed by timestamp")
    return RawSeries.from_mapping(document)


def ingest_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Instrument symbol."),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of minute bars."),
) -> None:
    """Validate a minute series, reconcile it and persist its segments."""

    try:
        series = load_series(path)
    except DuplicateTimestampKey as exc:
        emit_error(
            str(exc),
            "CONTINUITY_ERROR",
            details={"reason": ContinuityIssueCode.DUPLICATE_TIMESTAMP.value, "timestamp": exc.key},
        )
        raise typer.Exit(code=CONTINUITY_EXIT_CODE) from exc
    except (OSError, ValueError, ValidationError) as exc:
        emit_error(str(exc), "INVALID_SERIES", details={"path": str(path)})
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    result = call_engine(ctx, lambda engine: engine.ingest(symbol, series))
    if not result.accepted:
        details: dict[str, object] = {}
        if result.rejection is not None:
            details = {
                "reason": result.rejection.code.value,
                "previous": result.rejection.previous.isoformat(),
                "current": result.rejection.current.isoformat(),
            }
        emit_error(result.rejected_reason or "series rejected", "CONTINUITY_ERROR", details=details)
        raise typer.Exit(code=CONTINUITY_EXIT_CODE)

    rows: list[Mapping[str, object]] = [
        {"metric": "stream_id", "value": result.stream_id},
        {"metric": "persisted_segments", "value": len(result.persisted_segments)},
        {"metric": "updated_segments", "value": len(result.updated_segments)},
        {"metric": "deleted_segments", "value": len(result.deleted_segment_ids)},
        {"metric": "points_persisted", "value": result.points_persisted},
    ]
    with command_output(ctx) as (formatter, stream):
        formatter.render(rows, stream=stream, columns=SUMMARY_COLUMNS)


def segments_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Instrument symbol."),
    stream_id: str | None = typer.Option(None, "--stream", help="Restrict to one stream."),
) -> None:
    """List stored segments ordered by end time."""

    segments = call_engine(ctx, lambda engine: engine.list_segments(symbol, stream_id))
    with command_output(ctx) as (formatter, stream):
        formatter.render([segment_row(segment) for segment in segments], stream=stream, columns=SEGMENT_COLUMNS)


def classify_command(
    ctx: typer.Context,
    segment_id: str = typer.Argument(..., help="Segment identifier."),
    schema: str | None = typer.Option(None, "--schema", help="Schema type: R, V or UNCLASSIFIED."),
    pattern_point: str | None = typer.Option(None, "--pattern-point", help="ISO timestamp inside the segment."),
    clear_pattern_point: bool = typer.Option(False, "--clear-pattern-point", help="Remove the pattern point."),
) -> None:
    """Set the schema type and/or pattern point of a segment."""

    if schema is None and pattern_point is None and not clear_pattern_point:
        emit_error("Nothing to update; pass --schema or --pattern-point.", "NOTHING_TO_UPDATE")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)
    if pattern_point is not None and clear_pattern_point:
        emit_error("--pattern-point and --clear-pattern-point are exclusive.", "CONFLICTING_OPTIONS")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)

    point: Any = UNSET
    if clear_pattern_point:
        point = None
    elif pattern_point is not None:
        point = _parse_timestamp(pattern_point, "INVALID_PATTERN_POINT")

    schema_type = UNSET if schema is None else schema
    status = call_engine(
        ctx, lambda engine: engine.classify(segment_id, schema_type=schema_type, pattern_point=point)
    )
    _report_status(ctx, segment_id, status)


def feedback_command(
    ctx: typer.Context,
    segment_id: str = typer.Argument(..., help="Segment identifier."),
    correct: float = typer.Option(..., "--correct", help="Correctness value of the trial (0 means wrong)."),
    interval: float = typer.Option(..., "--interval", help="Trial duration in minutes."),
    result: float = typer.Option(..., "--result", help="Signed trial result."),
) -> None:
    """Append one feedback trial to a segment."""

    status = call_engine(ctx, lambda engine: engine.record_feedback(segment_id, correct, interval, result))
    _report_status(ctx, segment_id, status)


def _parse_timestamp(value: str, code: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        emit_error(f"Invalid timestamp '{value}'.", code)
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc


def manual_segment_command(
    ctx: typer.Context,
    stream_id: str = typer.Argument(..., help="Stream identifier (SYMBOL_YYYY-MM-DD)."),
    start: str = typer.Argument(..., help="ISO timestamp of the first bar."),
    end: str = typer.Argument(..., help="ISO timestamp of the last bar."),
    schema: str | None = typer.Option(None, "--schema", help="Schema type: R, V or UNCLASSIFIED."),
    pattern_point: str | None = typer.Option(None, "--pattern-point", help="ISO timestamp inside the range."),
) -> None:
    """Create a segment over an explicit range of a stream, taking over its minutes."""

    first = _parse_timestamp(start, "INVALID_RANGE")
    last = _parse_timestamp(end, "INVALID_RANGE")
    point: Any = UNSET if pattern_point is None else _parse_timestamp(pattern_point, "INVALID_PATTERN_POINT")
    schema_type = UNSET if schema is None else schema

    segment = call_engine(
        ctx,
        lambda engine: engine.create_manual_segment(
            stream_id, first, last, schema_type=schema_type, pattern_point=point
        ),
    )
    with command_output(ctx) as (formatter, stream):
        formatter.render([segment_row(segment)], stream=stream, columns=SEGMENT_COLUMNS)


def export_csv_command(
    ctx: typer.Context,
    symbol: str | None = typer.Option(None, "--symbol", help="Export one symbol only."),
) -> None:
    """Write classified segments as training CSV; ``--format`` does not apply."""

    rows = call_engine(ctx, lambda engine: engine.classified_rows(symbol))
    if not rows:
        emit_error("no classified segments found", "NO_CLASSIFIED_SEGMENTS", details={"symbol": symbol})
        raise typer.Exit(code=NOT_FOUND_EXIT_CODE)
    with command_output(ctx) as (_, stream):
        write_classified_csv(stream, rows)


def _report_status(ctx: typer.Context, segment_id: str, status: MutationStatus) -> None:
    if status is MutationStatus.NOT_FOUND:
        emit_error(f"segment '{segment_id}' not found", "SEGMENT_NOT_FOUND", details={"segment_id": segment_id})
        raise typer.Exit(code=NOT_FOUND_EXIT_CODE)
    with command_output(ctx) as (formatter, stream):
        formatter.render([{"segment_id": segment_id, "status": status.value}], stream=stream)


def segment_row(segment: AnalysisSegment) -> dict[str, object]:
    return {
        "id": segment.id,
        "stream_id": segment.stream_id,
        "segment_start": segment.segment_start,
        "segment_end": segment.segment_end,
        "point_count": segment.point_count,
        "min_price": segment.min_price,
        "average_price": segment.average_price,
        "max_price": segment.max_price,
        "x0": segment.x0,
        "trend_direction": segment.trend_direction,
        "schema_type": segment.schema_type,
        "invalid": segment.invalid,
    }


__all__ = [
    "DuplicateTimestampKey",
    "SEGMENT_COLUMNS",
    "classify_command",
    "export_csv_command",
    "feedback_command",
    "ingest_command",
    "load_series",
    "manual_segment_command",
    "register",
    "segment_row",
    "segments_command",
]
