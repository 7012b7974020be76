"""Main entry point for the tradeseg command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from tradeseg.core.config import ConfigManager
from tradeseg.core.logging import LOG_LEVELS, configure_from_settings

from .formatters import create_formatter
from .score import register as register_score_commands
from .segments import register as register_segment_commands
from .stream import register as register_stream_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for tradeseg."""

    app = typer.Typer(add_completion=False, help="Segment extraction and prediction scoring")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="How results are rendered: table or jsonl.",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write results to this file rather than stdout.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Minimum level of the JSON log lines written to stderr; defaults to the configured level.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Plain tables without styles or color swatches.",
        ),
        database: str | None = typer.Option(
            None,
            "--database",
            "-d",
            envvar="TRADESEG_DATABASE",
            help="DuckDB database file; defaults to the configured storage.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        level = log_level.strip().upper() if log_level else None
        if level is not None and level not in LOG_LEVELS:
            raise typer.BadParameter(
                f"Unsupported level '{log_level}'. Allowed values: {', '.join(LOG_LEVELS)}",
                param_hint="--log-level",
            )

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "log_level": level,
                "no_color": no_color,
                "database": database,
            }
        )
        try:
            configure_from_settings(ConfigManager().get_config().logging, level=level)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc

    register_segment_commands(app)
    register_score_commands(app)
    register_stream_commands(app)
    return app


app = create_app()


def run() -> None:
    """Console script entry point."""

    app()
