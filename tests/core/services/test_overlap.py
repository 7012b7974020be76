from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from tradeseg.core.models import RawSeries, SchemaType
from tradeseg.core.services.overlap import OverlapReconciler, shrink_segment
from tradeseg.core.services.segmenter import build_segment

START = datetime(2024, 1, 2, 9, 30, tzinfo=UTC)


def _stored(points_factory, start: datetime = START, count: int = 8, **changes: object):
    segment = build_segment(
        symbol="AAPL",
        stream_id="AAPL_2024-01-02",
        day=start.date(),
        points=points_factory(start, count),
        min_points=3,
        created_at=START,
    )
    return replace(segment, **changes) if changes else segment


def test_plan_without_stored_segments_persists_everything(series_factory) -> None:
    series = series_factory(count=10)

    plan = OverlapReconciler().plan(series, [])

    assert plan.points_to_persist == series.points
    assert plan.truncation_range == (START, START + timedelta(minutes=9))
    assert plan.segments_affected == 0
    assert plan.is_empty is False


def test_fully_covered_series_yields_empty_plan(points_factory, series_factory) -> None:
    stored = _stored(points_factory, count=10)

    plan = OverlapReconciler().plan(series_factory(count=10), [stored])

    assert plan.is_empty is True
    assert plan.covered_points == 10
    assert plan.truncation_range is None
    assert plan.updated_segments == ()
    assert plan.deleted_segments == ()


def test_overlapped_segment_is_shrunk_keeping_classification(points_factory, series_factory) -> None:
    stored = _stored(
        points_factory,
        schema_type=SchemaType.R,
        is_result_correct="1",
        result_interval="10",
        result="2",
    )
    series = series_factory(start=START + timedelta(minutes=3), count=10)

    plan = OverlapReconciler(min_points=3).plan(series, [stored])

    assert plan.deleted_segments == ()
    [shrunk] = plan.updated_segments
    assert shrunk.id == stored.id
    assert shrunk.point_count == 3
    assert shrunk.original_point_count == 8
    assert shrunk.segment_start == START
    assert shrunk.segment_end == START + timedelta(minutes=2)
    assert shrunk.x0 == Decimal("100.2000")
    assert shrunk.schema_type is SchemaType.R
    assert (shrunk.is_result_correct, shrunk.result_interval, shrunk.result) == ("1", "10", "2")
    # points already stored are not re-persisted
    assert len(plan.points_to_persist) == 5
    assert plan.covered_points == 5


def test_segment_left_below_minimum_is_deleted(points_factory, series_factory) -> None:
    stored = _stored(points_factory)
    series = series_factory(start=START + timedelta(minutes=3), count=10)

    plan = OverlapReconciler(min_points=6).plan(series, [stored])

    assert plan.updated_segments == ()
    assert plan.deleted_segment_ids == (stored.id,)


def test_segment_outside_truncation_range_is_untouched(points_factory, series_factory) -> None:
    earlier = _stored(points_factory, start=START - timedelta(hours=2))
    series = series_factory(count=10)

    plan = OverlapReconciler().plan(series, [earlier])

    assert plan.segments_affected == 0
    assert len(plan.points_to_persist) == 10


def test_truncation_range_spans_covered_timestamps_too(points_factory, series_factory) -> None:
    stored = _stored(points_factory, count=8)
    tail = _stored(points_factory, start=START + timedelta(minutes=8), count=8)
    # re-sends the second segment plus one fresh bar
    series = series_factory(start=START + timedelta(minutes=8), count=9)

    plan = OverlapReconciler(min_points=3).plan(series, [stored, tail])

    assert plan.truncation_range == (START + timedelta(minutes=8), START + timedelta(minutes=16))
    assert plan.deleted_segment_ids == (tail.id,)
    assert plan.updated_segments == ()
    assert [point.timestamp for point in plan.points_to_persist] == [START + timedelta(minutes=16)]


def test_shrink_segment_recomputes_statistics(points_factory) -> None:
    stored = _stored(points_factory)
    remaining = stored.points_data[4:]

    shrunk = shrink_segment(stored, remaining)

    assert shrunk.point_count == 4
    assert shrunk.min_price == Decimal("100.4000")
    assert shrunk.max_price == Decimal("100.7000")
    assert shrunk.average_price == (shrunk.min_price + shrunk.max_price) / 2
    assert shrunk.invalid is False
    assert shrunk.created_at == stored.created_at


def test_plan_accepts_unsorted_series(points_factory) -> None:
    points = points_factory(START, 6)
    series = RawSeries(points=tuple(reversed(points)))

    plan = OverlapReconciler().plan(series, [])

    assert plan.truncation_range == (START, START + timedelta(minutes=5))


def test_shrink_segment_clears_pattern_point_outside_new_bounds(points_factory) -> None:
    stored = _stored(points_factory, schema_type=SchemaType.V, pattern_point=START + timedelta(minutes=1))

    shrunk = shrink_segment(stored, stored.points_data[4:])

    assert shrunk.pattern_point is None
    assert shrunk.schema_type is SchemaType.V


def test_shrink_segment_keeps_pattern_point_on_new_boundary(points_factory) -> None:
    stored = _stored(points_factory, pattern_point=START + timedelta(minutes=4))

    shrunk = shrink_segment(stored, stored.points_data[4:])

    assert shrunk.pattern_point == START + timedelta(minutes=4)


def test_carve_shrinks_even_when_range_is_fully_covered(points_factory) -> None:
    stored = _stored(points_factory, count=10)

    plan = OverlapReconciler(min_points=3).carve(START + timedelta(minutes=6), START + timedelta(minutes=9), [stored])

    [shrunk] = plan.updated_segments
    assert shrunk.segment_end == START + timedelta(minutes=5)
    assert plan.points_to_persist == ()
    assert plan.truncation_range == (START + timedelta(minutes=6), START + timedelta(minutes=9))
