"""Reconciliation of newly ingested series against stored segments."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003
from dataclasses import dataclass, replace
from datetime import datetime  # noqa: TC003

from tradeseg.core.exceptions import OverlapConflict
from tradeseg.core.logging import get_logger
from tradeseg.core.models import AnalysisSegment, PricePoint, RawSeries
from tradeseg.core.services.continuity import is_contiguous
from tradeseg.core.services.segmenter import compute_segment_stats

_logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ReconciliationPlan:
    """Truncation decisions for one ingestion."""

    points_to_persist: tuple[PricePoint, ...] = ()
    updated_segments: tuple[AnalysisSegment, ...] = ()
    deleted_segments: tuple[AnalysisSegment, ...] = ()
    truncation_range: tuple[datetime, datetime] | None = None
    covered_points: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.points_to_persist

    @property
    def segments_affected(self) -> int:
        return len(self.updated_segments) + len(self.deleted_segments)

    @property
    def deleted_segment_ids(self) -> tuple[str, ...]:
        return tuple(segment.id for segment in self.deleted_segments)


def shrink_segment(segment: AnalysisSegment, remaining: Sequence[PricePoint]) -> AnalysisSegment:
    """Return ``segment`` rebuilt over ``remaining``.

    Classification and feedback are kept. A pattern point left outside the
    new bounds is cleared.
    """

    stats = compute_segment_stats(remaining)
    timestamps = [point.timestamp for point in remaining]
    pattern_point = segment.pattern_point
    if pattern_point is not None and not timestamps[0] <= pattern_point <= timestamps[-1]:
        pattern_point = None
    return replace(
        segment,
        segment_start=timestamps[0],
        segment_end=timestamps[-1],
        point_count=len(remaining),
        x0=stats.x0,
        min_price=stats.min_price,
        max_price=stats.max_price,
        average_price=stats.average_price,
        trend_direction=stats.trend_direction,
        points_in_region=stats.points_in_region,
        black_points_count=stats.black_points_count,
        u=stats.u,
        points_data=tuple(remaining),
        invalid=not is_contiguous(timestamps),
        pattern_point=pattern_point,
    )


class OverlapReconciler:
    """Shrinks or deletes stored segments overlapped by a new series."""

    def __init__(self, *, min_points: int = 6) -> None:
        self._min_points = min_points

    def plan(self, series: RawSeries, existing: Sequence[AnalysisSegment]) -> ReconciliationPlan:
        """Compute the truncation plan of ``existing`` against ``series``.

        Pure: nothing is written, the caller commits the plan.
        """

        covered: set[datetime] = set()
        for segment in existing:
            covered.update(segment.timestamps)

        new_points = tuple(point for point in series.points if point.timestamp not in covered)
        if not new_points:
            return ReconciliationPlan(covered_points=len(series.points))

        timestamps = series.timestamps
        plan = self.carve(min(timestamps), max(timestamps), existing)
        return replace(
            plan,
            points_to_persist=new_points,
            covered_points=len(series.points) - len(new_points),
        )

    def carve(
        self, range_start: datetime, range_end: datetime, existing: Sequence[AnalysisSegment]
    ) -> ReconciliationPlan:
        """Free ``[range_start, range_end]`` by shrinking or deleting every segment inside it.

        Unlike :meth:`plan` this applies whether or not the range holds new points.
        """

        updated: list[AnalysisSegment] = []
        deleted: list[AnalysisSegment] = []
        for segment in existing:
            if segment.segment_end < range_start or segment.segment_start > range_end:
                continue
            remaining = [
                point for point in segment.points_data if not range_start <= point.timestamp <= range_end
            ]
            if len(remaining) == len(segment.points_data):
                continue
            if len(remaining) < self._min_points:
                deleted.append(segment)
            else:
                updated.append(shrink_segment(segment, remaining))

        plan = ReconciliationPlan(
            updated_segments=tuple(updated),
            deleted_segments=tuple(deleted),
            truncation_range=(range_start, range_end),
        )
        if plan.segments_affected:
            conflict = OverlapConflict(
                f"{len(updated)} segments shrunk, {len(deleted)} deleted",
                segment_ids=[segment.id for segment in (*updated, *deleted)],
            )
            _logger.bind(error_code=conflict.error_code, segment_ids=conflict.segment_ids).info(
                "Resolved overlap: {}", conflict.message
            )
        return plan


__all__ = ["OverlapReconciler", "ReconciliationPlan", "shrink_segment"]
