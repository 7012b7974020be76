"""Trajectory scoring command."""

from __future__ import annotations

from typing import Mapping

import typer

from tradeseg.core.models import ScoreReport

from .utils import call_engine, command_output

SUMMARY_COLUMNS = ["metric", "value"]
POINT_COLUMNS = ["time", "value", "color", "is_extremity", "segment_id"]


def register(app: typer.Typer) -> None:
    """Register the score command on the provided application."""

    app.command("score")(score_command)


def score_command(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Instrument symbol."),
    stream_id: str | None = typer.Option(None, "--stream", help="Restrict to one stream."),
    show_points: bool = typer.Option(False, "--points", help="Also render the trajectory points."),
) -> None:
    """Fold segment feedback into a trajectory and report accuracy."""

    report = call_engine(ctx, lambda engine: engine.score_trajectory(symbol, stream_id))

    with command_output(ctx) as (formatter, stream):
        formatter.render(build_summary_rows(report), stream=stream, columns=SUMMARY_COLUMNS)
        if show_points:
            rows = [
                {
                    "time": point.time,
                    "value": point.value,
                    "color": point.color,
                    "is_extremity": point.is_extremity,
                    "segment_id": point.segment_id,
                }
                for point in report.points
            ]
            formatter.render(rows, stream=stream, columns=POINT_COLUMNS)


def build_summary_rows(report: ScoreReport) -> list[Mapping[str, object]]:
    stats = report.prediction_stats
    rows: list[Mapping[str, object]] = [
        {"metric": "success_rate", "value": round(report.success_rate, 2)},
        {"metric": "high_intensity_success_rate", "value": round(report.high_intensity_success_rate, 2)},
        {"metric": "trajectory_points", "value": len(report.points)},
        {"metric": "total_tests", "value": stats.total_tests},
        {"metric": "tests_correct", "value": stats.tests_correct},
        {"metric": "tests_incorrect", "value": stats.tests_incorrect},
        {"metric": "tests_unanswered", "value": stats.tests_unanswered},
    ]
    for result_stats in report.result_stats:
        rows.append(
            {
                "metric": f"success_rate@{result_stats.threshold:g}",
                "value": round(result_stats.success_rate, 2),
            }
        )
    return rows


__all__ = ["POINT_COLUMNS", "SUMMARY_COLUMNS", "build_summary_rows", "register", "score_command"]
