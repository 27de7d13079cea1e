from pipelines.rag import RagPipeline
from pipelines.store import RagStore

from .inspector import RagDiagnostics, build_preview, compute_overlap_length
from .models import (
    ChunkMatch,
    ChunkOverlap,
    ChunkPreview,
    DiagnosticStatus,
    DiagnosticStep,
    HealthReport,
    MissingAnalysis,
    QueryDiagnosis,
    ScoredChunk,
    SplitterComparison,
    SplitterComparisonEntry,
)
from .session import DiagnosticSession


def diagnose(target: RagPipeline | RagStore) -> DiagnosticSession:
    """Open a diagnostic session on a pipeline or a built store."""
    pipeline = target.pipeline if isinstance(target, RagStore) else target
    return DiagnosticSession(pipeline)


__all__ = [
    "ChunkMatch",
    "ChunkOverlap",
    "ChunkPreview",
    "DiagnosticSession",
    "DiagnosticStatus",
    "DiagnosticStep",
    "HealthReport",
    "MissingAnalysis",
    "QueryDiagnosis",
    "RagDiagnostics",
    "ScoredChunk",
    "SplitterComparison",
    "SplitterComparisonEntry",
    "build_preview",
    "compute_overlap_length",
    "diagnose",
]
