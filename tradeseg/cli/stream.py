"""Stream lifecycle commands."""

from __future__ import annotations

import typer

from .utils import call_engine, command_output

stream_app = typer.Typer(help="Stream lifecycle operations.")

STREAM_COLUMNS = ["id", "symbol", "date", "total_points", "terminated"]


def register(app: typer.Typer) -> None:
    """Register stream commands on the provided application."""

    app.add_typer(stream_app, name="stream", help="Manage ingested streams")


@stream_app.command("terminate")
def terminate_command(
    ctx: typer.Context,
    stream_id: str = typer.Argument(..., help="Stream identifier (SYMBOL_YYYY-MM-DD)."),
) -> None:
    """Mark a stream terminated; its segments can no longer be deleted."""

    price_stream = call_engine(ctx, lambda engine: engine.terminate_stream(stream_id))
    with command_output(ctx) as (formatter, stream):
        formatter.render(
            [{column: getattr(price_stream, column) for column in STREAM_COLUMNS}],
            stream=stream,
            columns=STREAM_COLUMNS,
        )


@stream_app.command("delete-segment")
def delete_segment_command(
    ctx: typer.Context,
    stream_id: str = typer.Argument(..., help="Stream identifier."),
    segment_id: str = typer.Argument(..., help="Segment identifier; must be the last one created."),
) -> None:
    """Delete the most recently created segment of a live stream."""

    deleted = call_engine(ctx, lambda engine: engine.delete_last_segment(segment_id, stream_id))
    with command_output(ctx) as (formatter, stream):
        formatter.render([{"segment_id": deleted.id, "status": "deleted"}], stream=stream)


__all__ = ["STREAM_COLUMNS", "delete_segment_command", "register", "stream_app", "terminate_command"]
