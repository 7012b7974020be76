from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime, timedelta

import pytest

from tradeseg.core.exceptions import (
    ClassificationError,
    InsufficientPointsError,
    StreamNotFoundError,
    StreamStateError,
)
from tradeseg.core.models import SchemaType
from tradeseg.core.services.manual import ManualSegmentService
from tradeseg.core.services.streams import StreamService

START = datetime(2024, 1, 2, 9, 30, tzinfo=UTC)
STREAM_ID = "AAPL_2024-01-02"


def _service(repository, clock) -> ManualSegmentService:
    later = clock() + timedelta(hours=1)
    return ManualSegmentService(repository, clock=lambda: later)


def _minute(offset: int) -> datetime:
    return START + timedelta(minutes=offset)


def test_range_takes_over_minutes_of_stored_segments(repository, stored_segments, clock) -> None:
    first, second = stored_segments

    created = _service(repository, clock).create(STREAM_ID, _minute(6), _minute(13))

    assert created.point_count == 8
    assert (created.segment_start, created.segment_end) == (_minute(6), _minute(13))
    assert created.stream_id == STREAM_ID
    assert created.schema_type is SchemaType.UNCLASSIFIED
    stored = {segment.id: segment for segment in repository.list_segments("AAPL")}
    assert set(stored) == {first.id, created.id, second.id}
    assert stored[first.id].segment_end == _minute(5)
    assert stored[second.id].segment_start == _minute(14)
    owners: Counter = Counter()
    for segment in stored.values():
        owners.update(segment.timestamps)
    assert len(owners) == 20
    assert max(owners.values()) == 1


def test_segments_left_too_small_are_deleted(repository, stored_segments, clock) -> None:
    created = _service(repository, clock).create(STREAM_ID, _minute(3), _minute(16))

    assert [segment.id for segment in repository.list_segments("AAPL")] == [created.id]


def test_classification_is_applied_on_creation(repository, stored_segments, clock) -> None:
    created = _service(repository, clock).create(
        STREAM_ID, _minute(6), _minute(13), schema_type="v", pattern_point=_minute(10)
    )

    stored = repository.get_segment(created.id)
    assert stored.schema_type is SchemaType.V
    assert stored.pattern_point == _minute(10)


def test_naive_bounds_are_read_as_utc(repository, stored_segments, clock) -> None:
    created = _service(repository, clock).create(
        STREAM_ID, _minute(6).replace(tzinfo=None), _minute(13).replace(tzinfo=None)
    )

    assert created.segment_start == _minute(6)


def test_too_few_points_raise_without_writes(repository, stored_segments, clock) -> None:
    before = repository.list_segments("AAPL")

    with pytest.raises(InsufficientPointsError) as excinfo:
        _service(repository, clock).create(STREAM_ID, _minute(2), _minute(6))

    assert excinfo.value.point_count == 5
    assert excinfo.value.minimum == 6
    assert repository.list_segments("AAPL") == before


def test_reversed_range_holds_no_points(repository, stored_segments, clock) -> None:
    with pytest.raises(InsufficientPointsError):
        _service(repository, clock).create(STREAM_ID, _minute(13), _minute(6))


def test_pattern_point_outside_range_raises_without_writes(repository, stored_segments, clock) -> None:
    before = repository.list_segments("AAPL")

    with pytest.raises(ClassificationError):
        _service(repository, clock).create(STREAM_ID, _minute(6), _minute(13), pattern_point=_minute(15))

    assert repository.list_segments("AAPL") == before


def test_unknown_schema_type_raises(repository, stored_segments, clock) -> None:
    with pytest.raises(ClassificationError):
        _service(repository, clock).create(STREAM_ID, _minute(6), _minute(13), schema_type="Z")


def test_unknown_stream_is_not_found(repository, clock) -> None:
    with pytest.raises(StreamNotFoundError):
        _service(repository, clock).create("MSFT_2024-01-02", _minute(0), _minute(9))


def test_terminated_stream_refuses_new_segments(repository, stored_segments, clock) -> None:
    repository.set_stream_terminated(STREAM_ID)

    with pytest.raises(StreamStateError):
        _service(repository, clock).create(STREAM_ID, _minute(6), _minute(13))

    assert repository.list_segments("AAPL") == stored_segments


def test_redrawing_a_stored_range_keeps_its_classification(repository, stored_segments, clock) -> None:
    first = stored_segments[0]
    repository.update_classification(first.id, SchemaType.R, _minute(4))
    repository.update_feedback(first.id, "1", "10", "2")

    created = _service(repository, clock).create(STREAM_ID, first.segment_start, first.segment_end)

    assert created.id == first.id
    stored = repository.get_segment(first.id)
    assert stored.schema_type is SchemaType.R
    assert stored.pattern_point == _minute(4)
    assert stored.result == "2"


def test_created_segment_is_the_last_one_deletable(repository, stored_segments, clock) -> None:
    created = _service(repository, clock).create(STREAM_ID, _minute(6), _minute(13))

    deleted = StreamService(repository).delete_last_segment(created.id, STREAM_ID)

    assert deleted.id == created.id
    assert repository.get_segment(created.id) is None
