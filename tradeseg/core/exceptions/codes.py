"""Standardised error codes."""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by every :class:`TradeSegError`."""

    GENERAL_ERROR = "GENERAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Ingestion
    CONTINUITY_ERROR = "CONTINUITY_ERROR"
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"
    OVERLAP_CONFLICT = "OVERLAP_CONFLICT"

    # Classification and feedback
    CLASSIFICATION_ERROR = "CLASSIFICATION_ERROR"
    MALFORMED_FEEDBACK = "MALFORMED_FEEDBACK"

    # Lookups and lifecycle
    SEGMENT_NOT_FOUND = "SEGMENT_NOT_FOUND"
    STREAM_NOT_FOUND = "STREAM_NOT_FOUND"
    STREAM_STATE_ERROR = "STREAM_STATE_ERROR"

    # Persistence boundary
    STORAGE_ERROR = "STORAGE_ERROR"
