"""Raw minute-bar series models."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_PRICE_FIELDS = ("open", "high", "low", "close")


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _normalise_key(key: str) -> str:
    # feeds label columns as "1. open" .. "5. volume"
    _, _, tail = key.rpartition(". ")
    return tail.strip().lower()


class PricePoint(BaseModel):
    """One OHLCV minute bar."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: Decimal = Field(allow_inf_nan=False)
    high: Decimal = Field(allow_inf_nan=False)
    low: Decimal = Field(allow_inf_nan=False)
    close: Decimal = Field(allow_inf_nan=False)
    volume: Decimal = Field(ge=Decimal("0"), allow_inf_nan=False)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_to_utc(cls, value: datetime) -> datetime:
        return to_utc(value)

    @field_serializer("open", "high", "low", "close", "volume", when_used="json")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal to string."""
        return str(value)

    @classmethod
    def from_fields(cls, timestamp: datetime | str, fields: Mapping[str, Any]) -> PricePoint:
        """Build a point from a column mapping, accepting numbered feed keys."""

        values = {_normalise_key(str(key)): value for key, value in fields.items()}
        return cls(timestamp=timestamp, **{name: values.get(name) for name in (*_PRICE_FIELDS, "volume")})


class RawSeries(BaseModel):
    """Minute bars for one instrument in the order they were supplied."""

    model_config = ConfigDict(frozen=True)

    points: tuple[PricePoint, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> RawSeries:
        """Build a series from ``{iso_timestamp: {open, high, low, close, volume}}``."""

        return cls(points=tuple(PricePoint.from_fields(ts, fields) for ts, fields in data.items()))

    @property
    def timestamps(self) -> list[datetime]:
        return [point.timestamp for point in self.points]

    def sorted_points(self) -> list[PricePoint]:
        return sorted(self.points, key=lambda point: point.timestamp)

    def __len__(self) -> int:
        return len(self.points)

    def __bool__(self) -> bool:
        return bool(self.points)


__all__ = ["PricePoint", "RawSeries", "to_utc"]
