"""Ingest orchestration: validate, reconcile, segment, persist."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from time import perf_counter
from typing import TYPE_CHECKING

from tradeseg.core.logging import get_logger, log_context
from tradeseg.core.models import AnalysisSegment, PricePoint, PriceStream, RawSeries, stream_id_for
from tradeseg.core.services.continuity import ContinuityIssue, check_continuity, ensure_continuity
from tradeseg.core.services.overlap import OverlapReconciler
from tradeseg.core.services.segmenter import Segmenter

if TYPE_CHECKING:
    from tradeseg.core.data.repositories.segments import SegmentRepository

_logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class IngestResult:
    """Outcome of one ingestion; ``rejected_reason`` is set when continuity failed."""

    stream_id: str | None
    persisted_segments: tuple[AnalysisSegment, ...] = ()
    updated_segments: tuple[AnalysisSegment, ...] = ()
    deleted_segment_ids: tuple[str, ...] = ()
    points_persisted: int = 0
    rejected_reason: str | None = None
    rejection: ContinuityIssue | None = None
    duration_ms: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.rejected_reason is None


def carry_over(candidates: Sequence[AnalysisSegment], deleted: Sequence[AnalysisSegment]) -> list[AnalysisSegment]:
    """Give candidates that reuse a deleted segment's id that segment's classification and feedback."""

    previous = {segment.id: segment for segment in deleted}
    merged: list[AnalysisSegment] = []
    for candidate in candidates:
        old = previous.get(candidate.id)
        if old is None:
            merged.append(candidate)
            continue
        pattern_point = old.pattern_point if old.pattern_point and candidate.contains(old.pattern_point) else None
        merged.append(
            replace(
                candidate,
                schema_type=old.schema_type,
                pattern_point=pattern_point,
                is_result_correct=old.is_result_correct,
                result_interval=old.result_interval,
                result=old.result,
                created_at=old.created_at or candidate.created_at,
            )
        )
    return merged


class IngestionService:
    """Runs continuity validation, overlap reconciliation and segmentation for one series."""

    def __init__(
        self,
        repository: SegmentRepository,
        segmenter: Segmenter | None = None,
        reconciler: OverlapReconciler | None = None,
        *,
        raise_on_rejection: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._segmenter = segmenter or Segmenter(clock=clock)
        self._reconciler = reconciler or OverlapReconciler(min_points=self._segmenter.config.min_points)
        self._raise_on_rejection = raise_on_rejection
        self._clock = clock or (lambda: datetime.now(UTC))

    def ingest(self, symbol: str, series: RawSeries) -> IngestResult:
        """Validate ``series`` and persist its segments.

        Raises:
            ContinuityError: only when ``raise_on_rejection`` is set.
            StorageError: the persistence boundary failed.
        """

        symbol = symbol.upper()
        with log_context(symbol=symbol):
            start = perf_counter()
            timestamps = series.timestamps
            check = check_continuity(timestamps)
            if check.issue is not None:
                _logger.warning("Rejected series: {}", check.issue.describe())
                if self._raise_on_rejection:
                    ensure_continuity(timestamps)
                return IngestResult(
                    stream_id=None,
                    rejected_reason=check.issue.describe(),
                    rejection=check.issue,
                )
            if not timestamps:
                _logger.info("Empty series, nothing to ingest")
                return IngestResult(stream_id=None)

            stream_id = stream_id_for(symbol, timestamps)
            existing = self._repository.list_segments(symbol)
            plan = self._reconciler.plan(series, existing)
            if plan.is_empty:
                _logger.info("All {} points already covered by stored segments", plan.covered_points)
                return IngestResult(stream_id=stream_id, duration_ms=(perf_counter() - start) * 1000)

            self._repository.apply_reconciliation(plan.updated_segments, plan.deleted_segment_ids)

            candidates = carry_over(self._segmenter.extract(symbol, series, stream_id), plan.deleted_segments)
            stream = self._merged_stream(stream_id, symbol, series)
            self._repository.save_ingestion(stream, candidates)

            _logger.info(
                "Persisted {} segments for stream {} ({} shrunk, {} deleted, {} new points)",
                len(candidates),
                stream_id,
                len(plan.updated_segments),
                len(plan.deleted_segments),
                len(plan.points_to_persist),
            )
            return IngestResult(
                stream_id=stream_id,
                persisted_segments=tuple(candidates),
                updated_segments=plan.updated_segments,
                deleted_segment_ids=plan.deleted_segment_ids,
                points_persisted=len(plan.points_to_persist),
                duration_ms=(perf_counter() - start) * 1000,
            )

    def _merged_stream(self, stream_id: str, symbol: str, series: RawSeries) -> PriceStream:
        """The stream after this ingestion: stored bars plus new ones, the new bar winning a shared minute."""

        by_timestamp: dict[datetime, PricePoint] = {}
        previous = self._repository.get_stream(stream_id)
        if previous is not None:
            by_timestamp.update((point.timestamp, point) for point in previous.points)
        by_timestamp.update((point.timestamp, point) for point in series.points)
        points = tuple(by_timestamp[moment] for moment in sorted(by_timestamp))
        return PriceStream(
            id=stream_id,
            symbol=symbol,
            date=points[-1].timestamp.date(),
            total_points=len(points),
            terminated=previous.terminated if previous is not None else False,
            created_at=previous.created_at if previous is not None and previous.created_at else self._clock(),
            points=points,
        )


__all__ = ["IngestResult", "IngestionService", "carry_over"]
