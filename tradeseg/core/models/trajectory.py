"""Scored trajectory and accuracy statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003
from enum import Enum


class TrajectoryColor(str, Enum):
    """Rendering colour of a trajectory point."""

    RED = "#ef4444"
    BLACK = "#000000"
    PURPLE = "#a855f7"


@dataclass(slots=True, frozen=True)
class TrajectoryPoint:
    """A single vertex of the scored trajectory."""

    time: datetime
    value: float
    color: TrajectoryColor
    is_extremity: bool
    segment_id: str


@dataclass(slots=True, frozen=True)
class Trajectory:
    """Output of one scoring fold."""

    points: tuple[TrajectoryPoint, ...]
    scored_segment_ids: tuple[str, ...]
    skipped_segment_ids: tuple[str, ...]
    correct_segment_ids: tuple[str, ...] = ()

    @property
    def success_rate(self) -> float:
        if not self.scored_segment_ids:
            return 0.0
        return len(self.correct_segment_ids) / len(self.scored_segment_ids) * 100


@dataclass(slots=True, frozen=True)
class PredictionStats:
    """Per-segment answer counts; one test per segment."""

    total_tests: int
    tests_correct: int
    tests_incorrect: int
    tests_unanswered: int
    success_rate: float


@dataclass(slots=True, frozen=True)
class ResultStats:
    """Counts of segments whose result reached ``threshold``."""

    threshold: float
    total: int
    correct: int
    incorrect: int
    success_rate: float


@dataclass(slots=True, frozen=True)
class ScoreReport:
    """Everything ``SegmentEngine.score_trajectory`` hands back."""

    points: tuple[TrajectoryPoint, ...]
    success_rate: float
    high_intensity_success_rate: float
    prediction_stats: PredictionStats
    result_stats: tuple[ResultStats, ...]


__all__ = [
    "PredictionStats",
    "ResultStats",
    "ScoreReport",
    "Trajectory",
    "TrajectoryColor",
    "TrajectoryPoint",
]
