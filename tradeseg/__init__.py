"""tradeseg - minute-bar segment extraction and prediction scoring.

Ingests minute OHLCV series, cuts each trading day into fixed windows,
reconciles re-ingested data against stored segments and folds segment
feedback into a scored trajectory.
"""

from tradeseg.core.config import EngineConfig, ScoringConfig, SegmentationConfig
from tradeseg.core.engine import SegmentEngine
from tradeseg.core.models import AnalysisSegment, PricePoint, RawSeries, SchemaType, ScoreReport

__version__ = "0.1.0"


def create_engine(database: str = ":memory:", **kwargs: object) -> SegmentEngine:
    """Return a DuckDB backed engine using ``database`` for storage.

    Examples:
        >>> import tradeseg
        >>> engine = tradeseg.create_engine()
        >>> engine.list_segments("AAPL")
        []
    """
    config = EngineConfig()
    config.storage.database = database
    return SegmentEngine.from_config(config, **kwargs)


__all__ = [
    "AnalysisSegment",
    "EngineConfig",
    "PricePoint",
    "RawSeries",
    "SchemaType",
    "ScoreReport",
    "ScoringConfig",
    "SegmentEngine",
    "SegmentationConfig",
    "__version__",
    "create_engine",
]
