from __future__ import annotations

import pytest

from tradeseg.core.config import CorrectnessMode
from tradeseg.core.exceptions import MalformedFeedbackError
from tradeseg.core.services.feedback import (
    Trial,
    append_feedback_value,
    format_feedback_value,
    is_segment_correct,
    is_trial_correct,
    parse_feedback,
)


def test_parse_feedback_splits_on_whitespace() -> None:
    parsed = parse_feedback("1 0  1", "10\t5 3", "0.5 -1 2")

    assert parsed.is_correct == (1.0, 0.0, 1.0)
    assert parsed.interval == (10.0, 5.0, 3.0)
    assert parsed.result == (0.5, -1.0, 2.0)
    assert parsed.trial_count == 3


def test_short_lists_are_padded_with_their_first_value() -> None:
    parsed = parse_feedback("1", "10 20 30", "2 3")

    assert parsed.trials() == [
        Trial(1.0, 10.0, 2.0),
        Trial(1.0, 20.0, 3.0),
        Trial(1.0, 30.0, 2.0),
    ]


def test_unparsable_and_non_finite_tokens_are_dropped() -> None:
    parsed = parse_feedback("1 yes nan", "10 inf", "2 -inf x")

    assert parsed.trials() == [Trial(1.0, 10.0, 2.0)]


@pytest.mark.parametrize(
    ("is_correct", "interval", "result"),
    [
        ("", "10", "2"),
        ("1", None, "2"),
        ("1", "10", "abc"),
        ("1", "10 -5", "2"),
    ],
)
def test_malformed_feedback_is_rejected(is_correct: str, interval: str | None, result: str) -> None:
    with pytest.raises(MalformedFeedbackError) as excinfo:
        parse_feedback(is_correct, interval, result, segment_id="AAPL_2024-01-02_deadbeef")

    assert excinfo.value.details["segment_id"] == "AAPL_2024-01-02_deadbeef"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, "1"), (1.0, "1"), (0, "0"), (0.75, "0.75"), (-2.5, "-2.5"), (10.0, "10")],
)
def test_format_feedback_value(value: float, expected: str) -> None:
    assert format_feedback_value(value) == expected


def test_format_feedback_value_rejects_non_finite() -> None:
    with pytest.raises(MalformedFeedbackError):
        format_feedback_value(float("inf"))


def test_append_feedback_value() -> None:
    assert append_feedback_value(None, 1) == "1"
    assert append_feedback_value("", 0.5) == "0.5"
    assert append_feedback_value("1 0 ", 2) == "1 0 2"


def test_revised_mode_is_non_zero_or_any() -> None:
    trials = [Trial(0.0, 5.0, 1.0), Trial(0.2, 5.0, 1.0)]

    assert is_trial_correct(0.2) is True
    assert is_trial_correct(0.0) is False
    assert is_trial_correct(-1.0) is True
    assert is_segment_correct(trials) is True
    assert is_segment_correct([Trial(0.0, 5.0, 1.0)]) is False


def test_legacy_mode_requires_every_trial_at_half() -> None:
    mode = CorrectnessMode.LEGACY
    trials = [Trial(1.0, 5.0, 1.0), Trial(0.4, 5.0, 1.0)]

    assert is_trial_correct(0.5, mode) is True
    assert is_trial_correct(0.4, mode) is False
    assert is_segment_correct(trials, mode) is False
    assert is_segment_correct([Trial(0.5, 5.0, 1.0), Trial(1.0, 5.0, 1.0)], mode) is True
    assert is_segment_correct([], mode) is False
