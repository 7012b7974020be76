"""Per-day fixed window segmentation of validated minute series."""

from __future__ import annotations

import hashlib
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime
from decimal import ROUND_FLOOR, ROUND_HALF_EVEN, Decimal

from tradeseg.core.config import SegmentationConfig
from tradeseg.core.exceptions import InsufficientPointsError
from tradeseg.core.logging import get_logger
from tradeseg.core.models import (
    AnalysisSegment,
    PricePoint,
    RawSeries,
    SegmentStats,
    TrendDirection,
)
from tradeseg.core.services.continuity import is_contiguous

PRICE_QUANTUM = Decimal("0.0001")
U_QUANTUM = Decimal("0.01")

_logger = get_logger(__name__)


def quantize_price(value: Decimal) -> Decimal:
    return value.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_EVEN)


def count_black_points(closes: Sequence[Decimal]) -> int:
    """Count direction changes of ``closes`` plus the two end points.

    Flat steps are ignored, so a plateau between two rises is not a change.
    With zero or one close the count equals the number of closes.
    """

    if len(closes) <= 1:
        return len(closes)
    variations = [b - a for a, b in zip(closes, closes[1:]) if b != a]
    changes = sum(1 for a, b in zip(variations, variations[1:]) if (a > 0) != (b > 0))
    return changes + 2


def compute_segment_stats(points: Sequence[PricePoint]) -> SegmentStats:
    """Derive the midpoint statistics of a window of bars."""

    if not points:
        raise InsufficientPointsError("cannot compute statistics of an empty window", 0, 1)

    closes = [point.close for point in points]
    x0 = quantize_price(closes[-1])
    min_price = quantize_price(min(closes))
    max_price = quantize_price(max(closes))
    # midpoint of the bounds, not the mean of the closes
    average_price = (min_price + max_price) / 2
    trend = TrendDirection.UP if x0 > average_price else TrendDirection.DOWN
    if trend is TrendDirection.UP:
        in_region = sum(1 for close in closes if close > average_price)
    else:
        in_region = sum(1 for close in closes if close < average_price)

    black_points = count_black_points(closes)
    u = ((max_price - min_price) / black_points).quantize(U_QUANTUM, rounding=ROUND_FLOOR) if black_points else Decimal("0")

    return SegmentStats(
        x0=x0,
        min_price=min_price,
        max_price=max_price,
        average_price=average_price,
        trend_direction=trend,
        points_in_region=in_region,
        black_points_count=black_points,
        u=u,
    )


def segment_id_for(symbol: str, day: date, first: datetime, last: datetime) -> str:
    """Deterministic ``SYMBOL_YYYY-MM-DD_xxxxxxxx`` id for a window."""

    digest = hashlib.sha1(
        f"{symbol}|{day.isoformat()}|{first.isoformat()}|{last.isoformat()}".encode()
    ).hexdigest()[:8]
    return f"{symbol}_{day.isoformat()}_{digest}"


def build_segment(
    *,
    symbol: str,
    stream_id: str,
    day: date,
    points: Sequence[PricePoint],
    min_points: int,
    created_at: datetime | None = None,
) -> AnalysisSegment:
    """Assemble a segment from sorted bars, enforcing the minimum size."""

    if len(points) < min_points:
        raise InsufficientPointsError(
            f"window of {len(points)} points is below the minimum of {min_points}",
            len(points),
            min_points,
        )
    stats = compute_segment_stats(points)
    timestamps = [point.timestamp for point in points]
    return AnalysisSegment(
        id=segment_id_for(symbol, day, timestamps[0], timestamps[-1]),
        stream_id=stream_id,
        symbol=symbol,
        date=day,
        segment_start=timestamps[0],
        segment_end=timestamps[-1],
        point_count=len(points),
        original_point_count=len(points),
        x0=stats.x0,
        min_price=stats.min_price,
        max_price=stats.max_price,
        average_price=stats.average_price,
        trend_direction=stats.trend_direction,
        points_in_region=stats.points_in_region,
        black_points_count=stats.black_points_count,
        u=stats.u,
        points_data=tuple(points),
        invalid=not is_contiguous(timestamps),
        created_at=created_at,
    )


class Segmenter:
    """Partitions a validated series into per-day, non-overlapping windows."""

    def __init__(
        self,
        config: SegmentationConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or SegmentationConfig()
        self._config.validate()
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def config(self) -> SegmentationConfig:
        return self._config

    def extract(self, symbol: str, series: RawSeries, stream_id: str) -> list[AnalysisSegment]:
        """Return candidate segments ordered by day then start time."""

        symbol = symbol.upper()
        created_at = self._clock()
        by_day: dict[date, list[PricePoint]] = defaultdict(list)
        for point in series.points:
            by_day[point.timestamp.date()].append(point)

        segments: list[AnalysisSegment] = []
        for day in sorted(by_day):
            day_points = sorted(by_day[day], key=lambda point: point.timestamp)
            segments.extend(self._slice_day(symbol, stream_id, day, day_points, created_at))
        return segments

    def _slice_day(
        self,
        symbol: str,
        stream_id: str,
        day: date,
        points: list[PricePoint],
        created_at: datetime,
    ) -> list[AnalysisSegment]:
        config = self._config
        emitted: list[AnalysisSegment] = []
        for offset in range(0, len(points), config.window_size):
            if len(emitted) >= config.max_segments_per_day:
                break
            window = points[offset : offset + config.window_size]
            if len(window) < config.window_size and not config.emit_partial_tail:
                break
            try:
                emitted.append(
                    build_segment(
                        symbol=symbol,
                        stream_id=stream_id,
                        day=day,
                        points=window,
                        min_points=config.min_points,
                        created_at=created_at,
                    )
                )
            except InsufficientPointsError as exc:
                _logger.bind(symbol=symbol).debug(
                    "Dropping window on {} at offset {}: {}", day.isoformat(), offset, exc.message
                )
        return emitted


__all__ = [
    "PRICE_QUANTUM",
    "Segmenter",
    "build_segment",
    "compute_segment_stats",
    "count_black_points",
    "quantize_price",
    "segment_id_for",
]
