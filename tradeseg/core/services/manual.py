"""Segments drawn by hand over a stored stream."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from tradeseg.core.exceptions import StreamStateError
from tradeseg.core.logging import get_logger, log_context
from tradeseg.core.models import AnalysisSegment, SchemaType, to_utc
from tradeseg.core.services.classification import UNSET, check_pattern_point, coerce_schema_type
from tradeseg.core.services.ingestion import carry_over
from tradeseg.core.services.overlap import OverlapReconciler
from tradeseg.core.services.segmenter import build_segment
from tradeseg.core.services.streams import StreamService

if TYPE_CHECKING:
    from tradeseg.core.data.repositories.segments import SegmentRepository

_logger = get_logger(__name__)


class ManualSegmentService:
    """Builds a segment over an explicit time range of a live stream.

    The range takes ownership of its minutes: stored segments inside it are
    shrunk or deleted exactly as an overlapping ingestion would.
    """

    def __init__(
        self,
        repository: SegmentRepository,
        *,
        min_points: int = 6,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._streams = StreamService(repository)
        self._reconciler = OverlapReconciler(min_points=min_points)
        self._min_points = min_points
        self._clock = clock or (lambda: datetime.now(UTC))

    def create(
        self,
        stream_id: str,
        start: datetime,
        end: datetime,
        schema_type: SchemaType | str = UNSET,
        pattern_point: datetime | None = UNSET,
    ) -> AnalysisSegment:
        """Persist a segment over the stream's bars in ``[start, end]``.

        Raises:
            StreamNotFoundError: unknown stream.
            StreamStateError: the stream is terminated.
            InsufficientPointsError: fewer bars than the minimum in the range.
            ClassificationError: unknown schema type or pattern point outside the range.
        """

        stream = self._streams.get_stream(stream_id)
        with log_context(symbol=stream.symbol, stream_id=stream_id):
            if stream.terminated:
                raise StreamStateError("cannot add segments to a terminated stream", stream_id)

            start, end = to_utc(start), to_utc(end)
            window = [point for point in stream.points if start <= point.timestamp <= end]
            segment = build_segment(
                symbol=stream.symbol,
                stream_id=stream_id,
                day=window[0].timestamp.date() if window else stream.date,
                points=window,
                min_points=self._min_points,
                created_at=self._clock(),
            )
            plan = self._reconciler.carve(
                segment.segment_start, segment.segment_end, self._repository.list_segments(stream.symbol)
            )
            # an identical range redrawn keeps what was recorded on it
            [segment] = carry_over([segment], plan.deleted_segments)
            if schema_type is not UNSET:
                segment = replace(segment, schema_type=coerce_schema_type(schema_type, segment.id))
            if pattern_point is not UNSET:
                segment = replace(segment, pattern_point=check_pattern_point(segment, pattern_point))

            self._repository.apply_reconciliation(plan.updated_segments, plan.deleted_segment_ids)
            self._repository.save_ingestion(stream, [segment])

            _logger.info(
                "Created segment {} over {} points ({} shrunk, {} deleted)",
                segment.id,
                segment.point_count,
                len(plan.updated_segments),
                len(plan.deleted_segments),
            )
            return segment


__all__ = ["ManualSegmentService"]
