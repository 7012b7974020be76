"""DuckDB table definitions for streams and analysis segments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

DEFAULT_MIN_POINT_COUNT = 6


@dataclass(frozen=True)
class ColumnDef:
    """One column; columns are ``NOT NULL`` unless declared ``nullable``."""

    name: str
    data_type: str
    nullable: bool = False
    default: str | None = None

    def sql(self) -> str:
        clause = f"{self.name} {self.data_type}"
        if not self.nullable:
            clause += " NOT NULL"
        if self.default is not None:
            clause += f" DEFAULT {self.default}"
        return clause


@dataclass(frozen=True)
class TableSchema:
    """Columns, key and CHECK constraints of one table."""

    name: str
    columns: tuple[ColumnDef, ...]
    primary_key: tuple[str, ...] = ()
    checks: tuple[str, ...] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    def create_ddl(self) -> str:
        clauses = [column.sql() for column in self.columns]
        if self.primary_key:
            clauses.append(f"PRIMARY KEY ({', '.join(self.primary_key)})")
        clauses += [f"CHECK ({check})" for check in self.checks]
        body = ",\n    ".join(clauses)
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {body}\n)"

    def ensure(self, conn: DuckDBPyConnection) -> None:
        conn.execute(self.create_ddl())


PRICE_STREAMS_TABLE = TableSchema(
    name="price_streams",
    columns=(
        ColumnDef("id", "VARCHAR"),
        ColumnDef("symbol", "VARCHAR"),
        ColumnDef("date", "DATE"),
        ColumnDef("total_points", "INTEGER"),
        ColumnDef("terminated", "BOOLEAN", default="FALSE"),
        ColumnDef("created_at", "TIMESTAMP"),
        # JSON array of {timestamp, open, high, low, close, volume}
        ColumnDef("points_data", "VARCHAR"),
    ),
    primary_key=("id",),
    checks=("total_points >= 0",),
)

_PRICE = "DECIMAL(18,4)"


def analysis_segments_table(min_point_count: int = DEFAULT_MIN_POINT_COUNT) -> TableSchema:
    """``analysis_segments`` with ``min_point_count`` as the stored point count floor."""

    return TableSchema(
        name="analysis_segments",
        columns=(
            ColumnDef("id", "VARCHAR"),
            ColumnDef("stream_id", "VARCHAR"),
            ColumnDef("symbol", "VARCHAR"),
            ColumnDef("date", "DATE"),
            ColumnDef("segment_start", "TIMESTAMP"),
            ColumnDef("segment_end", "TIMESTAMP"),
            ColumnDef("point_count", "INTEGER"),
            ColumnDef("original_point_count", "INTEGER"),
            ColumnDef("x0", _PRICE),
            ColumnDef("min_price", _PRICE),
            ColumnDef("max_price", _PRICE),
            # one extra digit keeps (min + max) / 2 exact
            ColumnDef("average_price", "DECIMAL(18,5)"),
            ColumnDef("trend_direction", "VARCHAR"),
            ColumnDef("points_in_region", "INTEGER"),
            ColumnDef("black_points_count", "INTEGER"),
            ColumnDef("u", "DECIMAL(18,2)"),
            ColumnDef("points_data", "VARCHAR"),
            ColumnDef("invalid", "BOOLEAN", default="FALSE"),
            ColumnDef("schema_type", "VARCHAR", default="'UNCLASSIFIED'"),
            ColumnDef("pattern_point", "TIMESTAMP", nullable=True),
            ColumnDef("is_result_correct", "VARCHAR", nullable=True),
            ColumnDef("result_interval", "VARCHAR", nullable=True),
            ColumnDef("result", "VARCHAR", nullable=True),
            ColumnDef("created_at", "TIMESTAMP"),
        ),
        primary_key=("id",),
        checks=(
            f"point_count >= {int(min_point_count)}",
            "min_price <= average_price AND average_price <= max_price",
            "segment_start < segment_end",
            "schema_type IN ('R', 'V', 'UNCLASSIFIED')",
            "trend_direction IN ('UP', 'DOWN')",
        ),
    )


ANALYSIS_SEGMENTS_TABLE = analysis_segments_table()


def ensure_engine_tables(conn: DuckDBPyConnection, *, min_point_count: int = DEFAULT_MIN_POINT_COUNT) -> None:
    """Create the stream and segment tables if they are missing."""

    for table in (PRICE_STREAMS_TABLE, analysis_segments_table(min_point_count)):
        table.ensure(conn)


__all__ = [
    "ANALYSIS_SEGMENTS_TABLE",
    "ColumnDef",
    "DEFAULT_MIN_POINT_COUNT",
    "PRICE_STREAMS_TABLE",
    "TableSchema",
    "analysis_segments_table",
    "ensure_engine_tables",
]
