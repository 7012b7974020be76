"""Targeted classification and feedback mutations of single segments."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from tradeseg.core.exceptions import ClassificationError, MalformedFeedbackError
from tradeseg.core.logging import get_logger
from tradeseg.core.models import AnalysisSegment, SchemaType, to_utc
from tradeseg.core.services.feedback import append_feedback_value

if TYPE_CHECKING:
    from tradeseg.core.data.repositories.segments import SegmentRepository

_logger = get_logger(__name__)


class MutationStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "notFound"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def coerce_schema_type(value: SchemaType | str, segment_id: str) -> SchemaType:
    if isinstance(value, SchemaType):
        return value
    try:
        return SchemaType(str(value).strip().upper())
    except ValueError as exc:
        raise ClassificationError(
            f"unknown schema type '{value}'",
            segment_id,
            {"allowed": [member.value for member in SchemaType]},
        ) from exc


def check_pattern_point(segment: AnalysisSegment, pattern_point: datetime | None) -> datetime | None:
    if pattern_point is None:
        return None
    moment = to_utc(pattern_point)
    if not segment.contains(moment):
        raise ClassificationError(
            "pattern point lies outside the segment",
            segment.id,
            {
                "pattern_point": moment.isoformat(),
                "segment_start": segment.segment_start.isoformat(),
                "segment_end": segment.segment_end.isoformat(),
            },
        )
    return moment


class ClassificationStore:
    """Sets schema type, pattern point and feedback on one segment at a time."""

    def __init__(self, repository: SegmentRepository) -> None:
        self._repository = repository

    def set_schema_type(self, segment_id: str, schema_type: SchemaType | str) -> MutationStatus:
        return self.classify(segment_id, schema_type=schema_type)

    def set_pattern_point(self, segment_id: str, pattern_point: datetime | None) -> MutationStatus:
        """Set the pattern point, or clear it with ``None``."""

        return self.classify(segment_id, pattern_point=pattern_point)

    def classify(
        self,
        segment_id: str,
        schema_type: SchemaType | str = UNSET,
        pattern_point: datetime | None = UNSET,
    ) -> MutationStatus:
        """Update whichever of ``schema_type`` and ``pattern_point`` is given.

        Raises:
            ClassificationError: unknown schema type or pattern point outside the span.
        """

        segment = self._repository.get_segment(segment_id)
        if segment is None:
            return MutationStatus.NOT_FOUND

        new_type = segment.schema_type if schema_type is UNSET else coerce_schema_type(schema_type, segment_id)
        new_point = segment.pattern_point if pattern_point is UNSET else check_pattern_point(segment, pattern_point)

        if not self._repository.update_classification(segment_id, new_type, new_point):
            return MutationStatus.NOT_FOUND
        _logger.bind(symbol=segment.symbol).info(
            "Classified segment {} as {}", segment_id, new_type.value
        )
        return MutationStatus.OK

    def record_feedback(
        self,
        segment_id: str,
        is_correct: float,
        interval_minutes: float,
        result: float,
    ) -> MutationStatus:
        """Append one trial to the segment's three feedback lists."""

        if interval_minutes < 0:
            raise ClassificationError(
                "interval must not be negative", segment_id, {"interval_minutes": interval_minutes}
            )
        segment = self._repository.get_segment(segment_id)
        if segment is None:
            return MutationStatus.NOT_FOUND
        try:
            updated = (
                append_feedback_value(segment.is_result_correct, is_correct),
                append_feedback_value(segment.result_interval, interval_minutes),
                append_feedback_value(segment.result, result),
            )
        except MalformedFeedbackError as exc:
            raise ClassificationError(exc.message, segment_id) from exc

        if not self._repository.update_feedback(segment_id, *updated):
            return MutationStatus.NOT_FOUND
        _logger.bind(symbol=segment.symbol).info("Recorded feedback trial on segment {}", segment_id)
        return MutationStatus.OK

    def replace_feedback(
        self,
        segment_id: str,
        is_result_correct: str | None,
        result_interval: str | None,
        result: str | None,
    ) -> MutationStatus:
        """Overwrite the three raw feedback strings as submitted."""

        def clean(value: str | None) -> str | None:
            if value is None:
                return None
            return " ".join(value.split()) or None

        if not self._repository.update_feedback(
            segment_id, clean(is_result_correct), clean(result_interval), clean(result)
        ):
            return MutationStatus.NOT_FOUND
        return MutationStatus.OK


__all__ = ["UNSET", "ClassificationStore", "MutationStatus", "check_pattern_point", "coerce_schema_type"]
