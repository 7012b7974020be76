"""Parsing of the space separated feedback lists stored on segments."""

from __future__ import annotations

import math
from collections.abc import Sequence  # noqa: TC003
from dataclasses import dataclass

from tradeseg.core.config import CorrectnessMode
from tradeseg.core.exceptions import MalformedFeedbackError

LEGACY_CORRECT_THRESHOLD = 0.5


@dataclass(slots=True, frozen=True)
class Trial:
    """One feedback outcome: correctness flag, elapsed minutes, signed result."""

    is_correct: float
    interval: float
    result: float


@dataclass(slots=True, frozen=True)
class ParsedFeedback:
    """The three feedback lists as float sequences, possibly of unequal length."""

    is_correct: tuple[float, ...]
    interval: tuple[float, ...]
    result: tuple[float, ...]

    @property
    def trial_count(self) -> int:
        return max(len(self.is_correct), len(self.interval), len(self.result))

    def trials(self) -> list[Trial]:
        """Normalise to ``trial_count`` trials, padding short lists with their first value."""

        n = self.trial_count
        is_correct = _pad(self.is_correct, n)
        interval = _pad(self.interval, n)
        result = _pad(self.result, n)
        return [Trial(is_correct[i], interval[i], result[i]) for i in range(n)]


def _pad(values: tuple[float, ...], length: int) -> tuple[float, ...]:
    if len(values) >= length:
        return values
    return values + (values[0],) * (length - len(values))


def _tokens(raw: str | None) -> tuple[float, ...]:
    values: list[float] = []
    for token in (raw or "").split():
        try:
            value = float(token)
        except ValueError:
            continue
        if math.isfinite(value):
            values.append(value)
    return tuple(values)


def parse_feedback(
    is_correct: str | None,
    interval: str | None,
    result: str | None,
    *,
    segment_id: str | None = None,
) -> ParsedFeedback:
    """Parse the three raw feedback strings of a segment.

    Unparsable and non-finite tokens are dropped. Raises
    :class:`MalformedFeedbackError` when a list ends up empty or an interval
    is negative.
    """

    parsed = ParsedFeedback(_tokens(is_correct), _tokens(interval), _tokens(result))
    for name, values in (
        ("is_result_correct", parsed.is_correct),
        ("result_interval", parsed.interval),
        ("result", parsed.result),
    ):
        if not values:
            raise MalformedFeedbackError(f"{name} has no parseable values", segment_id=segment_id)
    if any(value < 0 for value in parsed.interval):
        raise MalformedFeedbackError("result_interval contains a negative value", segment_id=segment_id)
    return parsed


def format_feedback_value(value: float) -> str:
    """Render a value the way it is appended to a stored list."""

    number = float(value)
    if not math.isfinite(number):
        raise MalformedFeedbackError(f"feedback value {value!r} is not finite")
    if number.is_integer():
        return str(int(number))
    return repr(number)


def append_feedback_value(existing: str | None, value: float) -> str:
    rendered = format_feedback_value(value)
    existing = (existing or "").strip()
    return f"{existing} {rendered}" if existing else rendered


def is_trial_correct(value: float, mode: CorrectnessMode = CorrectnessMode.REVISED) -> bool:
    if mode is CorrectnessMode.LEGACY:
        return value >= LEGACY_CORRECT_THRESHOLD
    return value != 0


def is_segment_correct(trials: Sequence[Trial], mode: CorrectnessMode = CorrectnessMode.REVISED) -> bool:
    """OR over trials in revised mode, AND over trials in legacy mode."""

    if mode is CorrectnessMode.LEGACY:
        return bool(trials) and all(is_trial_correct(trial.is_correct, mode) for trial in trials)
    return any(is_trial_correct(trial.is_correct, mode) for trial in trials)


__all__ = [
    "LEGACY_CORRECT_THRESHOLD",
    "ParsedFeedback",
    "Trial",
    "append_feedback_value",
    "format_feedback_value",
    "is_segment_correct",
    "is_trial_correct",
    "parse_feedback",
]
