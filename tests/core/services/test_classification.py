from __future__ import annotations

from datetime import timedelta, timezone

import pytest

from tradeseg.core.exceptions import ClassificationError
from tradeseg.core.models import SchemaType
from tradeseg.core.services.classification import ClassificationStore, MutationStatus


@pytest.fixture()
def store(repository) -> ClassificationStore:
    return ClassificationStore(repository)


def test_set_schema_type_persists(store, repository, stored_segments) -> None:
    segment = stored_segments[0]

    assert store.set_schema_type(segment.id, "r") is MutationStatus.OK
    assert repository.get_segment(segment.id).schema_type is SchemaType.R

    assert store.set_schema_type(segment.id, SchemaType.V) is MutationStatus.OK
    assert repository.get_segment(segment.id).schema_type is SchemaType.V


def test_unknown_segment_reports_not_found(store, stored_segments) -> None:
    assert store.set_schema_type("missing", SchemaType.R) is MutationStatus.NOT_FOUND
    assert store.record_feedback("missing", 1, 10, 2) is MutationStatus.NOT_FOUND
    assert store.replace_feedback("missing", "1", "10", "2") is MutationStatus.NOT_FOUND
    assert MutationStatus.NOT_FOUND.value == "notFound"


def test_unknown_schema_type_is_rejected(store, stored_segments) -> None:
    with pytest.raises(ClassificationError) as excinfo:
        store.set_schema_type(stored_segments[0].id, "Z")

    assert excinfo.value.details["allowed"] == ["R", "V", "UNCLASSIFIED"]


def test_pattern_point_inside_span_is_stored_in_utc(store, repository, stored_segments) -> None:
    segment = stored_segments[0]
    moment = segment.segment_start + timedelta(minutes=3)
    local = moment.astimezone(timezone(timedelta(hours=-5)))

    assert store.set_pattern_point(segment.id, local) is MutationStatus.OK
    assert repository.get_segment(segment.id).pattern_point == moment


def test_pattern_point_on_bounds_is_accepted(store, stored_segments) -> None:
    segment = stored_segments[0]

    assert store.set_pattern_point(segment.id, segment.segment_start) is MutationStatus.OK
    assert store.set_pattern_point(segment.id, segment.segment_end) is MutationStatus.OK


def test_pattern_point_outside_span_is_rejected(store, repository, stored_segments) -> None:
    segment = stored_segments[0]

    with pytest.raises(ClassificationError):
        store.set_pattern_point(segment.id, segment.segment_end + timedelta(minutes=1))

    assert repository.get_segment(segment.id).pattern_point is None


def test_pattern_point_can_be_cleared(store, repository, stored_segments) -> None:
    segment = stored_segments[0]
    store.set_pattern_point(segment.id, segment.segment_start)

    assert store.set_pattern_point(segment.id, None) is MutationStatus.OK
    assert repository.get_segment(segment.id).pattern_point is None


def test_classify_leaves_unspecified_field_alone(store, repository, stored_segments) -> None:
    segment = stored_segments[1]
    store.classify(segment.id, schema_type=SchemaType.V, pattern_point=segment.segment_end)

    store.classify(segment.id, schema_type=SchemaType.R)

    stored = repository.get_segment(segment.id)
    assert stored.schema_type is SchemaType.R
    assert stored.pattern_point == segment.segment_end


def test_record_feedback_appends_one_trial(store, repository, stored_segments) -> None:
    segment = stored_segments[0]

    store.record_feedback(segment.id, 1, 10, 2)
    store.record_feedback(segment.id, 0, 2.5, -0.75)

    stored = repository.get_segment(segment.id)
    assert stored.is_result_correct == "1 0"
    assert stored.result_interval == "10 2.5"
    assert stored.result == "2 -0.75"


def test_record_feedback_rejects_negative_interval(store, stored_segments) -> None:
    with pytest.raises(ClassificationError):
        store.record_feedback(stored_segments[0].id, 1, -1, 2)


def test_record_feedback_rejects_non_finite_values(store, repository, stored_segments) -> None:
    segment = stored_segments[0]

    with pytest.raises(ClassificationError):
        store.record_feedback(segment.id, 1, 10, float("nan"))

    assert repository.get_segment(segment.id).result is None


def test_replace_feedback_normalises_whitespace(store, repository, stored_segments) -> None:
    segment = stored_segments[0]
    store.record_feedback(segment.id, 1, 10, 2)

    assert store.replace_feedback(segment.id, " 1  0 ", "5\t5", "") is MutationStatus.OK

    stored = repository.get_segment(segment.id)
    assert (stored.is_result_correct, stored.result_interval, stored.result) == ("1 0", "5 5", None)
