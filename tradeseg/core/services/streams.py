"""Stream lifecycle: termination and removal of the last created segment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tradeseg.core.exceptions import SegmentNotFoundError, StreamNotFoundError, StreamStateError
from tradeseg.core.logging import get_logger

if TYPE_CHECKING:
    from tradeseg.core.data.repositories.segments import SegmentRepository
    from tradeseg.core.models import AnalysisSegment, PriceStream

_logger = get_logger(__name__)


class StreamService:
    """Guards the few mutations allowed on an ingested stream."""

    def __init__(self, repository: SegmentRepository) -> None:
        self._repository = repository

    def get_stream(self, stream_id: str) -> PriceStream:
        stream = self._repository.get_stream(stream_id)
        if stream is None:
            raise StreamNotFoundError(stream_id)
        return stream

    def terminate(self, stream_id: str) -> PriceStream:
        """Mark the stream terminated. Terminating twice is a no-op."""

        stream = self.get_stream(stream_id)
        if not stream.terminated:
            self._repository.set_stream_terminated(stream_id)
            _logger.bind(symbol=stream.symbol).info("Terminated stream {}", stream_id)
        return self.get_stream(stream_id)

    def delete_last_segment(self, segment_id: str, stream_id: str) -> AnalysisSegment:
        """Delete ``segment_id`` if it is the most recently created segment of a live stream.

        Raises:
            SegmentNotFoundError: no such segment on this stream.
            StreamNotFoundError: unknown stream.
            StreamStateError: the stream is terminated or a newer segment exists.
        """

        segment = self._repository.get_segment(segment_id)
        if segment is None or segment.stream_id != stream_id:
            raise SegmentNotFoundError(segment_id)

        latest = self._repository.latest_segment(stream_id)
        if latest is None or latest.id != segment_id:
            raise StreamStateError(
                "only the last created segment can be deleted",
                stream_id,
                {"segment_id": segment_id, "last_segment_id": latest.id if latest else None},
            )

        stream = self.get_stream(stream_id)
        if stream.terminated:
            raise StreamStateError("cannot delete segments from a terminated stream", stream_id)

        self._repository.delete_segment(segment_id)
        _logger.bind(symbol=segment.symbol).info("Deleted segment {} from stream {}", segment_id, stream_id)
        return segment


__all__ = ["StreamService"]
