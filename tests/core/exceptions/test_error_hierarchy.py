"""Tests for the TradeSegError hierarchy."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tradeseg.core.exceptions import (
    ClassificationError,
    ContinuityError,
    ErrorCode,
    InsufficientPointsError,
    MalformedFeedbackError,
    OverlapConflict,
    SegmentNotFoundError,
    StorageError,
    StreamNotFoundError,
    StreamStateError,
    TradeSegError,
)


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (InsufficientPointsError("too few", 4, 6), ErrorCode.INSUFFICIENT_POINTS),
        (OverlapConflict("1 segments shrunk", ["a"]), ErrorCode.OVERLAP_CONFLICT),
        (MalformedFeedbackError("empty list", "seg"), ErrorCode.MALFORMED_FEEDBACK),
        (ClassificationError("bad type", "seg"), ErrorCode.CLASSIFICATION_ERROR),
        (SegmentNotFoundError("seg"), ErrorCode.SEGMENT_NOT_FOUND),
        (StreamNotFoundError("AAPL_2024-01-02"), ErrorCode.STREAM_NOT_FOUND),
        (StreamStateError("terminated", "AAPL_2024-01-02"), ErrorCode.STREAM_STATE_ERROR),
        (StorageError("io", operation="save_ingestion"), ErrorCode.STORAGE_ERROR),
    ],
)
def test_errors_carry_their_code(error: TradeSegError, code: ErrorCode) -> None:
    """Every error exposes its code and serialises to a payload."""

    assert isinstance(error, TradeSegError)
    assert error.error_code == code.value
    assert error.to_payload()["code"] == code.value
    assert error.to_payload()["message"] == error.message


def test_continuity_error_records_offending_pair() -> None:
    previous = datetime(2024, 1, 2, 9, 30, tzinfo=UTC)
    current = datetime(2024, 1, 2, 9, 33, tzinfo=UTC)

    error = ContinuityError("gap", reason="INTRADAY_GAP", previous=previous, current=current, details={"symbol": "AAPL"})

    assert error.to_payload()["details"] == {
        "symbol": "AAPL",
        "reason": "INTRADAY_GAP",
        "previous": "2024-01-02T09:30:00+00:00",
        "current": "2024-01-02T09:33:00+00:00",
    }


def test_payload_details_are_copied() -> None:
    """Mutating a payload must not affect the error."""

    error = SegmentNotFoundError("AAPL_2024-01-02_deadbeef")

    payload = error.to_payload()
    payload["details"]["segment_id"] = "other"

    assert error.details["segment_id"] == "AAPL_2024-01-02_deadbeef"
    assert str(error) == "segment 'AAPL_2024-01-02_deadbeef' not found"


def test_storage_error_without_operation_has_no_details() -> None:
    assert StorageError("disk full").details == {}
