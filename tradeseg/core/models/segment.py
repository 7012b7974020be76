"""Analysis segment models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime  # noqa: TC003
from decimal import Decimal  # noqa: TC003
from enum import Enum

from tradeseg.core.models.series import PricePoint  # noqa: TC001


class SchemaType(str, Enum):
    """Pattern classification assigned to a segment."""

    R = "R"
    V = "V"
    UNCLASSIFIED = "UNCLASSIFIED"


class TrendDirection(str, Enum):
    """Side of the price midpoint the segment closes on."""

    UP = "UP"
    DOWN = "DOWN"


@dataclass(slots=True, frozen=True)
class SegmentStats:
    """Descriptive statistics derived from a segment's closes."""

    x0: Decimal
    min_price: Decimal
    max_price: Decimal
    average_price: Decimal
    trend_direction: TrendDirection
    points_in_region: int
    black_points_count: int
    u: Decimal


@dataclass(slots=True, frozen=True)
class AnalysisSegment:
    """A window of consecutive minute bars inside one trading day.

    Feedback is kept as the three raw space separated strings it is stored as;
    ``tradeseg.core.services.feedback.parse_feedback`` is the only reader.
    """

    id: str
    stream_id: str
    symbol: str
    date: date
    segment_start: datetime
    segment_end: datetime
    point_count: int
    original_point_count: int
    x0: Decimal
    min_price: Decimal
    max_price: Decimal
    average_price: Decimal
    trend_direction: TrendDirection
    points_in_region: int
    black_points_count: int
    u: Decimal
    points_data: tuple[PricePoint, ...] = field(default=(), repr=False)
    invalid: bool = False
    schema_type: SchemaType = SchemaType.UNCLASSIFIED
    pattern_point: datetime | None = None
    is_result_correct: str | None = None
    result_interval: str | None = None
    result: str | None = None
    created_at: datetime | None = None

    @property
    def timestamps(self) -> list[datetime]:
        return [point.timestamp for point in self.points_data]

    @property
    def has_feedback(self) -> bool:
        return any(value for value in (self.is_result_correct, self.result_interval, self.result))

    def contains(self, moment: datetime) -> bool:
        """Return whether ``moment`` falls inside ``[segment_start, segment_end]``."""

        return self.segment_start <= moment <= self.segment_end


__all__ = ["AnalysisSegment", "SchemaType", "SegmentStats", "TrendDirection"]
