"""Repository layer."""

from tradeseg.core.data.repositories.segments import DuckDBSegmentRepository, SegmentRepository

__all__ = ["DuckDBSegmentRepository", "SegmentRepository"]
