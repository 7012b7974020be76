"""Core exception classes for tradeseg."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tradeseg.core.exceptions.codes import ErrorCode


class TradeSegError(Exception):
    """Base exception for the segment engine."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialise the exception.

        Args:
            message: Human readable message.
            error_code: Value of an :class:`ErrorCode`.
            details: Extra structured context.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serialisable payload representing the error."""

        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class ConfigurationError(TradeSegError):
    """Raised when engine configuration is invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value, details)


class ContinuityError(TradeSegError):
    """A raw series broke the one-minute cadence contract; the batch is rejected."""

    def __init__(
        self,
        message: str,
        reason: str,
        previous: datetime,
        current: datetime,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.update(
            {
                "reason": reason,
                "previous": previous.isoformat(),
                "current": current.isoformat(),
            }
        )
        super().__init__(message, ErrorCode.CONTINUITY_ERROR.value, super_details)
        self.reason = reason
        self.previous = previous
        self.current = current


class InsufficientPointsError(TradeSegError):
    """A window or truncated segment holds fewer points than the minimum."""

    def __init__(self, message: str, point_count: int, minimum: int):
        super().__init__(
            message,
            ErrorCode.INSUFFICIENT_POINTS.value,
            {"point_count": point_count, "minimum": minimum},
        )
        self.point_count = point_count
        self.minimum = minimum


class OverlapConflict(TradeSegError):
    """New data overlaps stored segments. Resolved by truncation, never raised to callers."""

    def __init__(self, message: str, segment_ids: list[str] | None = None):
        super().__init__(message, ErrorCode.OVERLAP_CONFLICT.value, {"segment_ids": segment_ids or []})
        self.segment_ids = segment_ids or []


class MalformedFeedbackError(TradeSegError):
    """Feedback lists on a segment cannot be scored."""

    def __init__(self, message: str, segment_id: str | None = None):
        details = {"segment_id": segment_id} if segment_id else {}
        super().__init__(message, ErrorCode.MALFORMED_FEEDBACK.value, details)
        self.segment_id = segment_id


class ClassificationError(TradeSegError):
    """Invalid schema type or pattern point."""

    def __init__(self, message: str, segment_id: str, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["segment_id"] = segment_id
        super().__init__(message, ErrorCode.CLASSIFICATION_ERROR.value, super_details)
        self.segment_id = segment_id


class SegmentNotFoundError(TradeSegError):
    """Segment lookup by id failed."""

    def __init__(self, segment_id: str):
        super().__init__(
            f"segment '{segment_id}' not found",
            ErrorCode.SEGMENT_NOT_FOUND.value,
            {"segment_id": segment_id},
        )
        self.segment_id = segment_id


class StreamNotFoundError(TradeSegError):
    """Stream lookup by id failed."""

    def __init__(self, stream_id: str):
        super().__init__(
            f"stream '{stream_id}' not found",
            ErrorCode.STREAM_NOT_FOUND.value,
            {"stream_id": stream_id},
        )
        self.stream_id = stream_id


class StreamStateError(TradeSegError):
    """Operation not allowed in the stream's current state."""

    def __init__(self, message: str, stream_id: str, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["stream_id"] = stream_id
        super().__init__(message, ErrorCode.STREAM_STATE_ERROR.value, super_details)
        self.stream_id = stream_id


class StorageError(TradeSegError):
    """Failure raised by the persistence boundary."""

    def __init__(self, message: str, operation: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if operation:
            super_details["operation"] = operation
        super().__init__(message, ErrorCode.STORAGE_ERROR.value, super_details)
        self.operation = operation
