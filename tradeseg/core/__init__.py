"""tradeseg core modules."""

from tradeseg.core.config.settings import ConfigManager, EngineConfig
from tradeseg.core.engine import SegmentEngine
from tradeseg.core.models import AnalysisSegment, RawSeries, SchemaType

__all__ = [
    "AnalysisSegment",
    "ConfigManager",
    "EngineConfig",
    "RawSeries",
    "SchemaType",
    "SegmentEngine",
]
