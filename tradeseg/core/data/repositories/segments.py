"""Persistence port for streams and segments, with its DuckDB adapter."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import duckdb

from tradeseg.core.data.schema import (
    PRICE_STREAMS_TABLE,
    analysis_segments_table,
    ensure_engine_tables,
)
from tradeseg.core.exceptions import StorageError
from tradeseg.core.logging import get_logger
from tradeseg.core.models import (
    AnalysisSegment,
    PricePoint,
    PriceStream,
    SchemaType,
    TrendDirection,
)

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_logger = get_logger(__name__)

_SEGMENT_COLUMNS = analysis_segments_table().column_names
_STREAM_COLUMNS = PRICE_STREAMS_TABLE.column_names


class SegmentRepository(ABC):
    """Storage boundary the engine reads snapshots from and commits plans to."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create backing tables if needed."""

    @abstractmethod
    def list_segments(self, symbol: str, stream_id: str | None = None) -> list[AnalysisSegment]:
        """Segments of ``symbol`` ordered by ``segment_end`` ascending."""

    @abstractmethod
    def list_classified_segments(self, symbol: str | None = None) -> list[AnalysisSegment]:
        """Segments with a schema type other than ``UNCLASSIFIED``, all symbols unless ``symbol`` is given."""

    @abstractmethod
    def get_segment(self, segment_id: str) -> AnalysisSegment | None:
        """Return one segment or ``None``."""

    @abstractmethod
    def latest_segment(self, stream_id: str) -> AnalysisSegment | None:
        """Return the most recently created segment of a stream."""

    @abstractmethod
    def apply_reconciliation(
        self,
        updated: Sequence[AnalysisSegment],
        deleted_ids: Sequence[str],
    ) -> None:
        """Commit shrunk segments and deletions in a single transaction."""

    @abstractmethod
    def save_ingestion(self, stream: PriceStream, segments: Sequence[AnalysisSegment]) -> None:
        """Upsert ``stream`` and insert ``segments`` in a single transaction."""

    @abstractmethod
    def update_classification(
        self,
        segment_id: str,
        schema_type: SchemaType,
        pattern_point: datetime | None,
    ) -> bool:
        """Overwrite the classification columns; ``False`` when the segment is missing."""

    @abstractmethod
    def update_feedback(
        self,
        segment_id: str,
        is_result_correct: str | None,
        result_interval: str | None,
        result: str | None,
    ) -> bool:
        """Overwrite the three raw feedback strings; ``False`` when the segment is missing."""

    @abstractmethod
    def delete_segment(self, segment_id: str) -> bool:
        """Delete one segment; ``False`` when it is missing."""

    @abstractmethod
    def get_stream(self, stream_id: str) -> PriceStream | None:
        """Return one stream or ``None``."""

    @abstractmethod
    def set_stream_terminated(self, stream_id: str) -> bool:
        """Mark a stream terminated; ``False`` when it is missing."""

    @abstractmethod
    def close(self) -> None:
        """Release resources."""


def _to_db_time(value: datetime | None) -> datetime | None:
    # TIMESTAMP columns hold naive UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_time(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def dump_points(points: Iterable[PricePoint]) -> str:
    return json.dumps([point.model_dump(mode="json") for point in points])


def load_points(payload: str) -> tuple[PricePoint, ...]:
    return tuple(PricePoint.model_validate(item) for item in json.loads(payload))


class DuckDBSegmentRepository(SegmentRepository):
    """DuckDB adapter; owns one connection for its lifetime."""

    def __init__(self, conn: DuckDBPyConnection, *, min_point_count: int = 6) -> None:
        self._conn = conn
        self._min_point_count = min_point_count

    @property
    def connection(self) -> DuckDBPyConnection:
        return self._conn

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except duckdb.Error as exc:
            _logger.bind(error_code="STORAGE_ERROR").error("DuckDB {} failed: {}", operation, exc)
            raise StorageError(str(exc), operation=operation) from exc

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[DuckDBPyConnection]:
        with self._guard(operation):
            self._conn.execute("BEGIN TRANSACTION")
            try:
                yield self._conn
                self._conn.execute("COMMIT")
            except Exception:
                self._conn.execute("ROLLBACK")
                raise

    def ensure_schema(self) -> None:
        with self._guard("ensure_schema"):
            ensure_engine_tables(self._conn, min_point_count=self._min_point_count)

    def list_segments(self, symbol: str, stream_id: str | None = None) -> list[AnalysisSegment]:
        sql = f"SELECT {', '.join(_SEGMENT_COLUMNS)} FROM analysis_segments WHERE symbol = ?"
        params: list[Any] = [symbol.upper()]
        if stream_id is not None:
            sql += " AND stream_id = ?"
            params.append(stream_id)
        sql += " ORDER BY segment_end ASC, id ASC"
        with self._guard("list_segments"):
            rows = self._conn.execute(sql, params).fetchall()
        return [self._segment_from_row(row) for row in rows]

    def list_classified_segments(self, symbol: str | None = None) -> list[AnalysisSegment]:
        sql = f"SELECT {', '.join(_SEGMENT_COLUMNS)} FROM analysis_segments WHERE schema_type <> 'UNCLASSIFIED'"
        params: list[Any] = []
        if symbol is not None:
            sql += " AND symbol = ?"
            params.append(symbol.upper())
        sql += " ORDER BY symbol ASC, segment_end ASC, id ASC"
        with self._guard("list_classified_segments"):
            rows = self._conn.execute(sql, params).fetchall()
        return [self._segment_from_row(row) for row in rows]

    def get_segment(self, segment_id: str) -> AnalysisSegment | None:
        with self._guard("get_segment"):
            row = self._conn.execute(
                f"SELECT {', '.join(_SEGMENT_COLUMNS)} FROM analysis_segments WHERE id = ?",
                [segment_id],
            ).fetchone()
        return self._segment_from_row(row) if row else None

    def latest_segment(self, stream_id: str) -> AnalysisSegment | None:
        """Most recently created segment of a stream, latest end first on ties."""

        with self._guard("latest_segment"):
            row = self._conn.execute(
                f"SELECT {', '.join(_SEGMENT_COLUMNS)} FROM analysis_segments WHERE stream_id = ? "
                "ORDER BY created_at DESC, segment_end DESC LIMIT 1",
                [stream_id],
            ).fetchone()
        return self._segment_from_row(row) if row else None

    def apply_reconciliation(self, updated: Sequence[AnalysisSegment], deleted_ids: Sequence[str]) -> None:
        if not updated and not deleted_ids:
            return
        with self._transaction("apply_reconciliation") as conn:
            for segment_id in deleted_ids:
                conn.execute("DELETE FROM analysis_segments WHERE id = ?", [segment_id])
            for segment in updated:
                conn.execute(
                    """
                    UPDATE analysis_segments SET
                        segment_start = ?, segment_end = ?, point_count = ?, x0 = ?,
                        min_price = ?, max_price = ?, average_price = ?, trend_direction = ?,
                        points_in_region = ?, black_points_count = ?, u = ?, points_data = ?,
                        invalid = ?, pattern_point = ?
                    WHERE id = ?
                    """,
                    [
                        _to_db_time(segment.segment_start),
                        _to_db_time(segment.segment_end),
                        segment.point_count,
                        segment.x0,
                        segment.min_price,
                        segment.max_price,
                        segment.average_price,
                        segment.trend_direction.value,
                        segment.points_in_region,
                        segment.black_points_count,
                        segment.u,
                        dump_points(segment.points_data),
                        segment.invalid,
                        _to_db_time(segment.pattern_point),
                        segment.id,
                    ],
                )

    def save_ingestion(self, stream: PriceStream, segments: Sequence[AnalysisSegment]) -> None:
        placeholders = ", ".join("?" for _ in _SEGMENT_COLUMNS)
        with self._transaction("save_ingestion") as conn:
            conn.execute(
                f"""
                INSERT INTO price_streams ({', '.join(_STREAM_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    total_points = excluded.total_points,
                    points_data = excluded.points_data
                """,
                [
                    stream.id,
                    stream.symbol,
                    stream.date,
                    stream.total_points,
                    stream.terminated,
                    _to_db_time(stream.created_at or datetime.now(UTC)),
                    dump_points(stream.points),
                ],
            )
            if segments:
                conn.executemany(
                    f"INSERT INTO analysis_segments ({', '.join(_SEGMENT_COLUMNS)}) VALUES ({placeholders})",
                    [self._segment_to_row(segment) for segment in segments],
                )

    def update_classification(
        self,
        segment_id: str,
        schema_type: SchemaType,
        pattern_point: datetime | None,
    ) -> bool:
        with self._guard("update_classification"):
            row = self._conn.execute(
                "UPDATE analysis_segments SET schema_type = ?, pattern_point = ? WHERE id = ? RETURNING id",
                [schema_type.value, _to_db_time(pattern_point), segment_id],
            ).fetchone()
        return row is not None

    def update_feedback(
        self,
        segment_id: str,
        is_result_correct: str | None,
        result_interval: str | None,
        result: str | None,
    ) -> bool:
        with self._guard("update_feedback"):
            row = self._conn.execute(
                "UPDATE analysis_segments SET is_result_correct = ?, result_interval = ?, result = ? "
                "WHERE id = ? RETURNING id",
                [is_result_correct, result_interval, result, segment_id],
            ).fetchone()
        return row is not None

    def delete_segment(self, segment_id: str) -> bool:
        with self._guard("delete_segment"):
            row = self._conn.execute(
                "DELETE FROM analysis_segments WHERE id = ? RETURNING id", [segment_id]
            ).fetchone()
        return row is not None

    def get_stream(self, stream_id: str) -> PriceStream | None:
        with self._guard("get_stream"):
            row = self._conn.execute(
                f"SELECT {', '.join(_STREAM_COLUMNS)} FROM price_streams WHERE id = ?", [stream_id]
            ).fetchone()
        if row is None:
            return None
        values = dict(zip(_STREAM_COLUMNS, row))
        return PriceStream(
            id=values["id"],
            symbol=values["symbol"],
            date=values["date"],
            total_points=values["total_points"],
            terminated=bool(values["terminated"]),
            created_at=_from_db_time(values["created_at"]),
            points=load_points(values["points_data"]),
        )

    def set_stream_terminated(self, stream_id: str) -> bool:
        with self._guard("set_stream_terminated"):
            row = self._conn.execute(
                "UPDATE price_streams SET terminated = TRUE WHERE id = ? RETURNING id", [stream_id]
            ).fetchone()
        return row is not None

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _segment_to_row(segment: AnalysisSegment) -> list[Any]:
        return [
            segment.id,
            segment.stream_id,
            segment.symbol,
            segment.date,
            _to_db_time(segment.segment_start),
            _to_db_time(segment.segment_end),
            segment.point_count,
            segment.original_point_count,
            segment.x0,
            segment.min_price,
            segment.max_price,
            segment.average_price,
            segment.trend_direction.value,
            segment.points_in_region,
            segment.black_points_count,
            segment.u,
            dump_points(segment.points_data),
            segment.invalid,
            segment.schema_type.value,
            _to_db_time(segment.pattern_point),
            segment.is_result_correct,
            segment.result_interval,
            segment.result,
            _to_db_time(segment.created_at or datetime.now(UTC)),
        ]

    @staticmethod
    def _segment_from_row(row: Sequence[Any]) -> AnalysisSegment:
        values = dict(zip(_SEGMENT_COLUMNS, row))
        return AnalysisSegment(
            id=values["id"],
            stream_id=values["stream_id"],
            symbol=values["symbol"],
            date=values["date"],
            segment_start=_from_db_time(values["segment_start"]),
            segment_end=_from_db_time(values["segment_end"]),
            point_count=values["point_count"],
            original_point_count=values["original_point_count"],
            x0=values["x0"],
            min_price=values["min_price"],
            max_price=values["max_price"],
            average_price=values["average_price"],
            trend_direction=TrendDirection(values["trend_direction"]),
            points_in_region=values["points_in_region"],
            black_points_count=values["black_points_count"],
            u=values["u"],
            points_data=load_points(values["points_data"]),
            invalid=bool(values["invalid"]),
            schema_type=SchemaType(values["schema_type"]),
            pattern_point=_from_db_time(values["pattern_point"]),
            is_result_correct=values["is_result_correct"],
            result_interval=values["result_interval"],
            result=values["result"],
            created_at=_from_db_time(values["created_at"]),
        )


__all__ = [
    "DuckDBSegmentRepository",
    "SegmentRepository",
    "dump_points",
    "load_points",
]
