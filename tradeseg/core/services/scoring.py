"""Trajectory scoring and accuracy statistics over segment feedback."""

from __future__ import annotations

import math
from collections.abc import Sequence  # noqa: TC003
from dataclasses import dataclass
from datetime import datetime, timedelta

from tradeseg.core.config import ScoringConfig
from tradeseg.core.exceptions import MalformedFeedbackError
from tradeseg.core.logging import get_logger
from tradeseg.core.models import (
    AnalysisSegment,
    PredictionStats,
    ResultStats,
    Trajectory,
    TrajectoryColor,
    TrajectoryPoint,
)
from tradeseg.core.services.feedback import (
    ParsedFeedback,
    is_segment_correct,
    is_trial_correct,
    parse_feedback,
)

_logger = get_logger(__name__)


@dataclass(slots=True)
class _FoldState:
    current_y: float = 0.0
    previous_start_y: float | None = None
    previous_correct: bool = True
    previous_end_time: datetime | None = None


def _safe_parse(segment: AnalysisSegment) -> ParsedFeedback | None:
    try:
        return parse_feedback(
            segment.is_result_correct,
            segment.result_interval,
            segment.result,
            segment_id=segment.id,
        )
    except MalformedFeedbackError as exc:
        _logger.bind(symbol=segment.symbol, error_code=exc.error_code).debug(
            "Skipping segment {}: {}", segment.id, exc.message
        )
        return None


class TrajectoryScorer:
    """Folds segment feedback into one continuous scored trajectory.

    Each trial moves the value by ``result * ln(interval + 1)`` over
    ``interval`` minutes. A correct segment carries its end value into the
    next one; after an incorrect segment the next one restarts from the
    incorrect segment's own start value.
    """

    def __init__(self, config: ScoringConfig | None = None) -> None:
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score(self, segments: Sequence[AnalysisSegment], anchor: datetime | None = None) -> Trajectory:
        """Score ``segments`` in the order given.

        Args:
            segments: Segments in chronological order.
            anchor: Start time of the first scored segment; defaults to the
                earliest ``segment_end`` among ``segments``.
        """

        if not segments:
            return Trajectory(points=(), scored_segment_ids=(), skipped_segment_ids=())

        mode = self._config.correctness_mode
        strong = self._config.strong_result_threshold
        start_anchor = anchor or min(segment.segment_end for segment in segments)

        state = _FoldState()
        points: list[TrajectoryPoint] = []
        scored: list[str] = []
        skipped: list[str] = []
        correct_ids: list[str] = []

        for segment in segments:
            parsed = _safe_parse(segment)
            if parsed is None:
                skipped.append(segment.id)
                continue
            trials = parsed.trials()

            if state.previous_start_y is None:
                start_y = 0.0
                current_time = start_anchor
            else:
                start_y = state.current_y if state.previous_correct else state.previous_start_y
                current_time = state.previous_end_time or start_anchor

            has_strong_result = any(abs(trial.result) >= strong for trial in trials)
            value = start_y
            last = len(trials) - 1
            segment_points: list[TrajectoryPoint] = []
            try:
                for index, trial in enumerate(trials):
                    if not is_trial_correct(trial.is_correct, mode):
                        color = TrajectoryColor.BLACK
                    elif has_strong_result:
                        color = TrajectoryColor.PURPLE
                    else:
                        color = TrajectoryColor.RED
                    end_time = current_time + timedelta(minutes=trial.interval)
                    end_value = value + trial.result * math.log(trial.interval + 1)
                    segment_points.append(TrajectoryPoint(current_time, value, color, index == 0, segment.id))
                    segment_points.append(TrajectoryPoint(end_time, end_value, color, index == last, segment.id))
                    current_time = end_time
                    value = end_value
            except OverflowError:
                _logger.bind(symbol=segment.symbol).debug(
                    "Skipping segment {}: intervals run past the representable time range", segment.id
                )
                skipped.append(segment.id)
                continue
            points.extend(segment_points)

            segment_correct = is_segment_correct(trials, mode)
            if segment_correct:
                state.current_y = value
                correct_ids.append(segment.id)
            state.previous_start_y = start_y
            state.previous_correct = segment_correct
            state.previous_end_time = current_time
            scored.append(segment.id)

        return Trajectory(
            points=tuple(points),
            scored_segment_ids=tuple(scored),
            skipped_segment_ids=tuple(skipped),
            correct_segment_ids=tuple(correct_ids),
        )

    def prediction_stats(self, segments: Sequence[AnalysisSegment]) -> PredictionStats:
        """Count one test per segment; unanswered segments carry no parseable feedback."""

        correct = incorrect = unanswered = 0
        for segment in segments:
            parsed = _safe_parse(segment) if segment.has_feedback else None
            if parsed is None:
                unanswered += 1
            elif is_segment_correct(parsed.trials(), self._config.correctness_mode):
                correct += 1
            else:
                incorrect += 1
        answered = correct + incorrect
        return PredictionStats(
            total_tests=len(segments),
            tests_correct=correct,
            tests_incorrect=incorrect,
            tests_unanswered=unanswered,
            success_rate=correct / answered * 100 if answered else 0.0,
        )

    def result_stats(self, segments: Sequence[AnalysisSegment], threshold: float) -> ResultStats:
        """A segment counts as correct when any trial's correctness value reaches ``threshold``."""

        correct = incorrect = 0
        for segment in segments:
            parsed = _safe_parse(segment) if segment.has_feedback else None
            if parsed is None:
                continue
            if any(trial.is_correct >= threshold for trial in parsed.trials()):
                correct += 1
            else:
                incorrect += 1
        total = correct + incorrect
        return ResultStats(
            threshold=threshold,
            total=total,
            correct=correct,
            incorrect=incorrect,
            success_rate=correct / total * 100 if total else 0.0,
        )


__all__ = ["TrajectoryScorer"]
