"""Pytest configuration for the tradeseg test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from tradeseg.core.config import EngineConfig, SegmentationConfig
from tradeseg.core.data.repositories.segments import DuckDBSegmentRepository
from tradeseg.core.data.storage import TradeSegDuckDBFactory
from tradeseg.core.engine import SegmentEngine
from tradeseg.core.models import AnalysisSegment, PricePoint, PriceStream, RawSeries, stream_id_for
from tradeseg.core.services.segmenter import Segmenter

FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

SeriesFactory = Callable[..., RawSeries]


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--tradeseg-run-integration",
        action="store_true",
        default=False,
        help="Run tradeseg integration tests that write DuckDB files to disk.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for tradeseg tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks tradeseg tests writing DuckDB files to disk",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--tradeseg-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --tradeseg-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def make_points(
    start: datetime,
    count: int,
    closes: Sequence[str | int | float] | None = None,
    *,
    step: timedelta = timedelta(minutes=1),
) -> list[PricePoint]:
    """Minute bars from ``start``; closes default to a gentle ramp."""

    points: list[PricePoint] = []
    for index in range(count):
        close = Decimal(str(closes[index])) if closes is not None else Decimal("100") + Decimal(index) / 10
        points.append(
            PricePoint(
                timestamp=start + step * index,
                open=close,
                high=close + 1,
                low=close - 1,
                close=close,
                volume=Decimal("1000"),
            )
        )
    return points


@pytest.fixture()
def series_factory() -> SeriesFactory:
    def _factory(
        start: datetime = datetime(2024, 1, 2, 9, 30, tzinfo=UTC),
        count: int = 10,
        closes: Sequence[str | int | float] | None = None,
    ) -> RawSeries:
        return RawSeries(points=tuple(make_points(start, count, closes)))

    return _factory


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture()
def repository() -> Iterator[DuckDBSegmentRepository]:
    repo = DuckDBSegmentRepository(TradeSegDuckDBFactory().create_connection())
    repo.ensure_schema()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def small_window_config() -> EngineConfig:
    """Ten point windows with the default minimum of six."""

    return EngineConfig(segmentation=SegmentationConfig(window_size=10, min_points=6, max_segments_per_day=6))


@pytest.fixture()
def engine(small_window_config: EngineConfig, clock: Callable[[], datetime]) -> Iterator[SegmentEngine]:
    instance = SegmentEngine.from_config(small_window_config, clock=clock)
    try:
        yield instance
    finally:
        instance.close()


@pytest.fixture()
def points_factory() -> Callable[..., list[PricePoint]]:
    return make_points


@pytest.fixture()
def stored_segments(
    repository: DuckDBSegmentRepository,
    series_factory: SeriesFactory,
    clock: Callable[[], datetime],
) -> list[AnalysisSegment]:
    """Two ten point AAPL segments persisted on one live stream."""

    series = series_factory(count=20)
    stream_id = stream_id_for("AAPL", series.timestamps)
    segments = Segmenter(SegmentationConfig(window_size=10), clock=clock).extract("AAPL", series, stream_id)
    stream = PriceStream(
        id=stream_id,
        symbol="AAPL",
        date=max(series.timestamps).date(),
        total_points=len(series),
        created_at=clock(),
        points=series.points,
    )
    repository.save_ingestion(stream, segments)
    return segments
