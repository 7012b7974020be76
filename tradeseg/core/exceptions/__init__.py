"""Exception handling module."""

from tradeseg.core.exceptions.base import (
    ClassificationError,
    ConfigurationError,
    ContinuityError,
    InsufficientPointsError,
    MalformedFeedbackError,
    OverlapConflict,
    SegmentNotFoundError,
    StorageError,
    StreamNotFoundError,
    StreamStateError,
    TradeSegError,
)
from tradeseg.core.exceptions.codes import ErrorCode

__all__ = [
    "TradeSegError",
    "ClassificationError",
    "ConfigurationError",
    "ContinuityError",
    "InsufficientPointsError",
    "MalformedFeedbackError",
    "OverlapConflict",
    "SegmentNotFoundError",
    "StorageError",
    "StreamNotFoundError",
    "StreamStateError",
    "ErrorCode",
]
