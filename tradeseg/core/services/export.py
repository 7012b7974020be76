"""CSV export of classified segments for offline model training."""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, TextIO
from zoneinfo import ZoneInfo

import pandas as pd

from tradeseg.core.config import ExportConfig
from tradeseg.core.logging import get_logger
from tradeseg.core.models import AnalysisSegment, PriceStream, SchemaType, TrendDirection

if TYPE_CHECKING:
    from tradeseg.core.data.repositories.segments import SegmentRepository

CSV_HEADER = ("ID", "R/V", "UP/DOWN", "u", "Time", "Red", "Green", "Next", "Result")

_logger = get_logger(__name__)


def format_price(value: Decimal) -> str:
    return format(value, ".6f")


@dataclass(slots=True, frozen=True)
class ClassifiedRow:
    """One exported line. ``red`` and ``green`` have no source and stay empty."""

    segment_id: str
    rv: int
    up_down: int
    u: Decimal
    time: str
    next_prices: tuple[Decimal, ...]
    red: str = ""
    green: str = ""
    result: str = ""

    @property
    def next(self) -> str:
        return " ".join(format_price(price) for price in self.next_prices)

    def values(self) -> tuple[object, ...]:
        return (self.segment_id, self.rv, self.up_down, self.u, self.time, self.red, self.green, self.next, self.result)


def write_classified_csv(handle: TextIO, rows: Sequence[ClassifiedRow]) -> None:
    """Write the quoted header line then one minimally quoted line per row."""

    handle.write(",".join(f'"{name}"' for name in CSV_HEADER) + "\n")
    frame = pd.DataFrame([row.values() for row in rows], columns=list(CSV_HEADER))
    frame.to_csv(handle, index=False, header=False, lineterminator="\n")


class ClassifiedExporter:
    """Turns every classified segment into a training row."""

    def __init__(self, repository: SegmentRepository, config: ExportConfig | None = None) -> None:
        self._repository = repository
        self._config = config or ExportConfig()
        self._config.validate()
        self._zone = ZoneInfo(self._config.timezone)

    def rows(self, symbol: str | None = None) -> list[ClassifiedRow]:
        segments = self._repository.list_classified_segments(symbol)
        streams: dict[str, PriceStream | None] = {}
        rows = []
        for segment in segments:
            if segment.stream_id not in streams:
                streams[segment.stream_id] = self._repository.get_stream(segment.stream_id)
            rows.append(self._row(segment, streams[segment.stream_id]))
        return rows

    def _row(self, segment: AnalysisSegment, stream: PriceStream | None) -> ClassifiedRow:
        return ClassifiedRow(
            segment_id=segment.id,
            rv=0 if segment.schema_type is SchemaType.R else 1,
            up_down=0 if segment.trend_direction is TrendDirection.DOWN else 1,
            u=segment.u,
            time=segment.segment_end.astimezone(self._zone).strftime("%H:%M"),
            next_prices=(segment.x0, *self._following_closes(segment, stream)),
        )

    def _following_closes(self, segment: AnalysisSegment, stream: PriceStream | None) -> list[Decimal]:
        """Closes after the segment on its own day, at most ``next_points`` of them."""

        if stream is None:
            return []
        closes = [
            point.close
            for point in sorted(stream.points, key=lambda point: point.timestamp)
            if point.timestamp > segment.segment_end and point.timestamp.date() == segment.date
        ]
        return closes[: self._config.next_points]

    def to_csv(self, symbol: str | None = None) -> str:
        rows = self.rows(symbol)
        buffer = io.StringIO()
        write_classified_csv(buffer, rows)
        _logger.info("Exported {} classified segments", len(rows))
        return buffer.getvalue()


__all__ = ["CSV_HEADER", "ClassifiedExporter", "ClassifiedRow", "format_price", "write_classified_csv"]
