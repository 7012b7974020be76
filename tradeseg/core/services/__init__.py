"""Engine services."""

from tradeseg.core.services.classification import ClassificationStore, MutationStatus
from tradeseg.core.services.continuity import (
    ContinuityIssue,
    ContinuityIssueCode,
    ContinuityResult,
    check_continuity,
    ensure_continuity,
    is_contiguous,
)
from tradeseg.core.services.export import ClassifiedExporter, ClassifiedRow
from tradeseg.core.services.feedback import ParsedFeedback, Trial, parse_feedback
from tradeseg.core.services.ingestion import IngestionService, IngestResult
from tradeseg.core.services.manual import ManualSegmentService
from tradeseg.core.services.overlap import OverlapReconciler, ReconciliationPlan
from tradeseg.core.services.scoring import TrajectoryScorer
from tradeseg.core.services.segmenter import Segmenter, compute_segment_stats
from tradeseg.core.services.streams import StreamService

__all__ = [
    "ClassificationStore",
    "ClassifiedExporter",
    "ClassifiedRow",
    "ContinuityIssue",
    "ContinuityIssueCode",
    "ContinuityResult",
    "IngestResult",
    "IngestionService",
    "ManualSegmentService",
    "MutationStatus",
    "OverlapReconciler",
    "ParsedFeedback",
    "ReconciliationPlan",
    "Segmenter",
    "StreamService",
    "TrajectoryScorer",
    "Trial",
    "check_continuity",
    "compute_segment_stats",
    "ensure_continuity",
    "is_contiguous",
    "parse_feedback",
]
