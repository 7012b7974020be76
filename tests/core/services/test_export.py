from __future__ import annotations

import csv
import io
from decimal import Decimal

from tradeseg.core.config import ExportConfig
from tradeseg.core.models import SchemaType
from tradeseg.core.services.export import CSV_HEADER, ClassifiedExporter, ClassifiedRow, write_classified_csv


def _expected_next(x0: str, closes: list[str]) -> str:
    return " ".join(f"{Decimal(value):.6f}" for value in [x0, *closes])


def test_rows_cover_only_classified_segments(repository, stored_segments) -> None:
    first, second = stored_segments
    repository.update_classification(first.id, SchemaType.R, None)

    [row] = ClassifiedExporter(repository).rows()

    assert row.segment_id == first.id
    assert row.rv == 0
    assert row.up_down == 1
    assert row.u == Decimal("0.45")
    # 09:39 UTC is 10:39 in Paris in January
    assert row.time == "10:39"
    assert (row.red, row.green, row.result) == ("", "", "")
    closes = [f"{100 + index / 10:.1f}" for index in range(10, 20)]
    assert row.next == _expected_next("100.9", closes)


def test_next_prices_are_capped_and_stay_on_the_segment_day(repository, stored_segments) -> None:
    first, second = stored_segments
    repository.update_classification(first.id, SchemaType.V, None)
    repository.update_classification(second.id, SchemaType.V, None)

    early, late = ClassifiedExporter(repository, ExportConfig(timezone="UTC", next_points=3)).rows("aapl")

    assert early.rv == 1
    assert early.time == "09:39"
    assert early.next == _expected_next("100.9", ["101.0", "101.1", "101.2"])
    # nothing follows the last bar of the stream
    assert late.next == _expected_next("101.9", [])


def test_symbol_filter_excludes_other_symbols(repository, stored_segments) -> None:
    repository.update_classification(stored_segments[0].id, SchemaType.R, None)

    assert ClassifiedExporter(repository).rows("MSFT") == []


def test_csv_text_has_quoted_header_and_one_line_per_segment(repository, stored_segments) -> None:
    first, second = stored_segments
    repository.update_classification(first.id, SchemaType.R, None)
    repository.update_classification(second.id, SchemaType.V, None)

    text = ClassifiedExporter(repository, ExportConfig(next_points=0)).to_csv()

    lines = text.splitlines()
    assert lines[0] == '"ID","R/V","UP/DOWN","u","Time","Red","Green","Next","Result"'
    assert lines[1] == f"{first.id},0,1,0.45,10:39,,,100.900000,"
    parsed = list(csv.reader(io.StringIO(text)))
    assert parsed[0] == list(CSV_HEADER)
    assert [record[0] for record in parsed[1:]] == [first.id, second.id]


def test_values_with_separators_are_quoted() -> None:
    row = ClassifiedRow(
        segment_id="A,B",
        rv=1,
        up_down=0,
        u=Decimal("0.10"),
        time="09:00",
        next_prices=(Decimal("1"),),
        red='say "hi"',
    )
    buffer = io.StringIO()

    write_classified_csv(buffer, [row])

    assert buffer.getvalue().splitlines()[1] == '"A,B",1,0,0.10,09:00,"say ""hi""",,1.000000,'
