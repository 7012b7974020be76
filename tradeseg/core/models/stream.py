"""Stored raw series produced by an ingestion."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from tradeseg.core.models.series import PricePoint  # noqa: TC001


def stream_id_for(symbol: str, timestamps: Iterable[datetime]) -> str:
    """Return ``SYMBOL_YYYY-MM-DD`` keyed on the most recent timestamp."""

    latest = max(timestamps)
    return f"{symbol.upper()}_{latest.date().isoformat()}"


@dataclass(slots=True, frozen=True)
class PriceStream:
    """One ingested raw series and its lifecycle state."""

    id: str
    symbol: str
    date: date
    total_points: int
    terminated: bool = False
    created_at: datetime | None = None
    points: tuple[PricePoint, ...] = field(default=(), repr=False)


__all__ = ["PriceStream", "stream_id_for"]
