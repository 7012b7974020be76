"""Data models module."""

from tradeseg.core.models.segment import AnalysisSegment, SchemaType, SegmentStats, TrendDirection
from tradeseg.core.models.series import PricePoint, RawSeries, to_utc
from tradeseg.core.models.stream import PriceStream, stream_id_for
from tradeseg.core.models.trajectory import (
    PredictionStats,
    ResultStats,
    ScoreReport,
    Trajectory,
    TrajectoryColor,
    TrajectoryPoint,
)

__all__ = [
    "AnalysisSegment",
    "PredictionStats",
    "PricePoint",
    "PriceStream",
    "RawSeries",
    "ResultStats",
    "SchemaType",
    "ScoreReport",
    "SegmentStats",
    "Trajectory",
    "TrajectoryColor",
    "TrajectoryPoint",
    "TrendDirection",
    "stream_id_for",
    "to_utc",
]
