"""Engine facade wiring the services to one persistence port."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from tradeseg.core.config import EngineConfig
from tradeseg.core.data.repositories.segments import DuckDBSegmentRepository, SegmentRepository
from tradeseg.core.data.storage import DuckDBFactoryConfig, TradeSegDuckDBFactory
from tradeseg.core.exceptions import SegmentNotFoundError
from tradeseg.core.logging import get_logger, log_context
from tradeseg.core.models import AnalysisSegment, PriceStream, RawSeries, ScoreReport, SchemaType
from tradeseg.core.services.classification import UNSET, ClassificationStore, MutationStatus
from tradeseg.core.services.export import ClassifiedExporter, ClassifiedRow
from tradeseg.core.services.ingestion import IngestionService, IngestResult
from tradeseg.core.services.manual import ManualSegmentService
from tradeseg.core.services.overlap import OverlapReconciler
from tradeseg.core.services.scoring import TrajectoryScorer
from tradeseg.core.services.segmenter import Segmenter
from tradeseg.core.services.streams import StreamService

if TYPE_CHECKING:
    from types import TracebackType

_logger = get_logger(__name__)


class SegmentEngine:
    """Ingest series, classify segments and score feedback trajectories.

    Callers serialise work per symbol; the engine takes no locks.
    """

    def __init__(
        self,
        repository: SegmentRepository,
        config: EngineConfig | None = None,
        *,
        raise_on_rejection: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(UTC))
        self._repository.ensure_schema()

        segmenter = Segmenter(self.config.segmentation, clock=self._clock)
        self._ingestion = IngestionService(
            repository,
            segmenter,
            OverlapReconciler(min_points=self.config.segmentation.min_points),
            raise_on_rejection=raise_on_rejection,
            clock=self._clock,
        )
        self._classification = ClassificationStore(repository)
        self._scorer = TrajectoryScorer(self.config.scoring)
        self._streams = StreamService(repository)
        self._manual = ManualSegmentService(
            repository, min_points=self.config.segmentation.min_points, clock=self._clock
        )
        self._exporter = ClassifiedExporter(repository, self.config.export)

    @classmethod
    def from_config(cls, config: EngineConfig | None = None, **kwargs: Any) -> SegmentEngine:
        """Build an engine backed by DuckDB as described by ``config.storage``."""

        config = config or EngineConfig()
        factory = TradeSegDuckDBFactory(DuckDBFactoryConfig.from_storage(config.storage))
        repository = DuckDBSegmentRepository(
            factory.create_connection(), min_point_count=config.segmentation.min_points
        )
        return cls(repository, config, **kwargs)

    @property
    def repository(self) -> SegmentRepository:
        return self._repository

    @property
    def scorer(self) -> TrajectoryScorer:
        return self._scorer

    def ingest(self, symbol: str, series: RawSeries | Mapping[str, Mapping[str, Any]]) -> IngestResult:
        if not isinstance(series, RawSeries):
            series = RawSeries.from_mapping(series)
        return self._ingestion.ingest(symbol, series)

    def classify(
        self,
        segment_id: str,
        schema_type: SchemaType | str = UNSET,
        pattern_point: datetime | None = UNSET,
    ) -> MutationStatus:
        return self._classification.classify(segment_id, schema_type=schema_type, pattern_point=pattern_point)

    def record_feedback(
        self,
        segment_id: str,
        is_correct: float,
        interval_minutes: float,
        result: float,
    ) -> MutationStatus:
        return self._classification.record_feedback(segment_id, is_correct, interval_minutes, result)

    def replace_feedback(
        self,
        segment_id: str,
        is_result_correct: str | None,
        result_interval: str | None,
        result: str | None,
    ) -> MutationStatus:
        return self._classification.replace_feedback(segment_id, is_result_correct, result_interval, result)

    def score_trajectory(self, symbol: str, stream_id: str | None = None) -> ScoreReport:
        """Score the symbol's segments ordered by ``segment_end``, optionally one stream only."""

        symbol = symbol.upper()
        with log_context(symbol=symbol):
            segments = self._repository.list_segments(symbol, stream_id)
            trajectory = self._scorer.score(segments)
            scoring = self.config.scoring
            high_intensity = self._scorer.result_stats(segments, scoring.high_intensity_threshold)
            strong = self._scorer.result_stats(segments, scoring.strong_result_threshold)
            _logger.info(
                "Scored {} of {} segments ({} skipped)",
                len(trajectory.scored_segment_ids),
                len(segments),
                len(trajectory.skipped_segment_ids),
            )
            return ScoreReport(
                points=trajectory.points,
                success_rate=trajectory.success_rate,
                high_intensity_success_rate=high_intensity.success_rate,
                prediction_stats=self._scorer.prediction_stats(segments),
                result_stats=(strong, high_intensity),
            )

    def list_segments(self, symbol: str, stream_id: str | None = None) -> list[AnalysisSegment]:
        return self._repository.list_segments(symbol, stream_id)

    def get_segment(self, segment_id: str) -> AnalysisSegment:
        segment = self._repository.get_segment(segment_id)
        if segment is None:
            raise SegmentNotFoundError(segment_id)
        return segment

    def get_stream(self, stream_id: str) -> PriceStream:
        return self._streams.get_stream(stream_id)

    def terminate_stream(self, stream_id: str) -> PriceStream:
        return self._streams.terminate(stream_id)

    def delete_last_segment(self, segment_id: str, stream_id: str) -> AnalysisSegment:
        return self._streams.delete_last_segment(segment_id, stream_id)

    def create_manual_segment(
        self,
        stream_id: str,
        start: datetime,
        end: datetime,
        schema_type: SchemaType | str = UNSET,
        pattern_point: datetime | None = UNSET,
    ) -> AnalysisSegment:
        """Build and persist a segment over the stream's bars in ``[start, end]``."""

        return self._manual.create(stream_id, start, end, schema_type=schema_type, pattern_point=pattern_point)

    def classified_rows(self, symbol: str | None = None) -> list[ClassifiedRow]:
        return self._exporter.rows(symbol)

    def export_classified_csv(self, symbol: str | None = None) -> str:
        """Render every classified segment, or those of ``symbol``, as CSV text."""

        return self._exporter.to_csv(symbol)

    def close(self) -> None:
        self._repository.close()

    def __enter__(self) -> SegmentEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["SegmentEngine"]
