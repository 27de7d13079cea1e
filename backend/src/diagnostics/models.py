"""Result types produced by the diagnostic tools.

Every step or check carries a status, a message and an optional suggestion.
The ``to_report``/``to_summary`` renderers are for humans; tests and tools
should read the fields.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.chunk import Chunk
from models.vector import VectorRecord

RULE = "=" * 40
THIN_RULE = "-" * 40


def truncate(text: str, max_length: int) -> str:
    return text if len(text) <= max_length else text[:max_length] + "..."


class DiagnosticStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    INFO = "info"

    @property
    def marker(self) -> str:
        return f"[{self.value.upper()}]"


class DiagnosticStep(BaseModel):
    """One analysis step or health check item."""

    status: DiagnosticStatus
    category: str
    message: str
    suggestion: Optional[str] = None

    @classmethod
    def passed(cls, category: str, message: str) -> "DiagnosticStep":
        return cls(status=DiagnosticStatus.PASS, category=category, message=message)

    @classmethod
    def warning(cls, category: str, message: str, suggestion: Optional[str] = None) -> "DiagnosticStep":
        return cls(status=DiagnosticStatus.WARN, category=category, message=message, suggestion=suggestion)

    @classmethod
    def failed(cls, category: str, message: str, suggestion: Optional[str] = None) -> "DiagnosticStep":
        return cls(status=DiagnosticStatus.FAIL, category=category, message=message, suggestion=suggestion)

    @classmethod
    def info(cls, category: str, message: str) -> "DiagnosticStep":
        return cls(status=DiagnosticStatus.INFO, category=category, message=message)

    @property
    def is_issue(self) -> bool:
        return self.status in (DiagnosticStatus.FAIL, DiagnosticStatus.WARN)


class ChunkOverlap(BaseModel):
    chunk_index_a: int
    chunk_index_b: int
    overlap_length: int


class ChunkPreview(BaseModel):
    """How a document splits, without storing anything."""

    chunks: list[Chunk]
    document_length: int
    overlaps: list[ChunkOverlap] = Field(default_factory=list)
    splitter_name: str

    @property
    def total_chunks(self) -> int:
        return len(self.chunks)

    @property
    def average_chunk_size(self) -> int:
        if not self.chunks:
            return 0
        return sum(len(c.content) for c in self.chunks) // len(self.chunks)

    def to_summary(self) -> str:
        lines = [
            f"=== Chunk Preview ({self.splitter_name}) ===",
            f"Document length: {self.document_length} chars -> {self.total_chunks} chunks "
            f"(avg {self.average_chunk_size} chars)",
            "",
        ]
        for i, chunk in enumerate(self.chunks):
            preview = truncate(chunk.content, 80).replace("\n", "\\n").replace("\r", "")
            lines.append(f"  [{i}] {len(chunk.content):5} chars | {preview}")
            if i < len(self.overlaps):
                lines.append(f"       overlap: {self.overlaps[i].overlap_length} chars")
        return "\n".join(lines)


class ChunkMatch(BaseModel):
    """A stored record whose content contains the searched text."""

    record: VectorRecord
    match_index: int
    preview: str


class ScoredChunk(BaseModel):
    rank: int
    record: VectorRecord
    score: float
    is_in_top_k: bool
    passes_min_score: bool
    contains_target: bool
    preview: str


class QueryDiagnosis(BaseModel):
    """Every stored chunk scored against a query, not only the top k."""

    query: str
    target_text: Optional[str] = None
    top_k: int
    min_score: Optional[float] = None
    total_chunks: int
    scored_results: list[ScoredChunk] = Field(default_factory=list)

    @property
    def target(self) -> Optional[ScoredChunk]:
        """Highest-ranked chunk containing the target text."""
        return next((r for r in self.scored_results if r.contains_target), None)

    def to_report(self, max_rows: int = 20) -> str:
        min_score = f"{self.min_score:.3f}" if self.min_score is not None else "none"
        lines = [
            "=== Query Diagnostic Report ===",
            f'Query: "{self.query}"',
            f'Target text: "{self.target_text or "(none)"}"',
            f"Settings: top_k={self.top_k}, min_score={min_score}",
            f"Total chunks in store: {self.total_chunks}",
            "",
        ]

        target = self.target
        if target is not None:
            lines.append(f"TARGET CHUNK found at rank #{target.rank} (score={target.score:.4f})")
            lines.append(f"  In top_k: {target.is_in_top_k} | Passes min_score: {target.passes_min_score}")
            if not target.is_in_top_k:
                lines.append(
                    f"  MISSED: target chunk is rank #{target.rank} but top_k={self.top_k}. "
                    "Increase top_k or improve chunking."
                )
            if not target.passes_min_score:
                lines.append(f"  FILTERED: target chunk score {target.score:.4f} < min_score {min_score}.")
            lines.append("")
        elif self.target_text is not None:
            lines.append("TARGET NOT FOUND in any scored chunk. The text may not have been indexed.")
            lines.append("")

        lines.append("--- All Results (by score) ---")
        for r in self.scored_results[:max_rows]:
            top_k_marker = " [top_k]" if r.is_in_top_k else ""
            target_marker = " *" if r.contains_target else ""
            lines.append(f"  #{r.rank:3} score={r.score:.4f}{top_k_marker}{target_marker} | {r.preview}")
        if len(self.scored_results) > max_rows:
            lines.append(f"  ... and {len(self.scored_results) - max_rows} more chunks")
        return "\n".join(lines)


class MissingAnalysis(BaseModel):
    """Ordered root-cause analysis of why a text was not retrieved."""

    query: str
    expected_text: str
    steps: list[DiagnosticStep] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    query_detail: Optional[QueryDiagnosis] = None

    @property
    def has_issues(self) -> bool:
        return any(step.is_issue for step in self.steps)

    def to_report(self) -> str:
        lines = [
            RULE,
            "  WhyMissing Analysis Report",
            RULE,
            f'  Query:    "{self.query}"',
            f'  Expected: "{self.expected_text}"',
            THIN_RULE,
        ]
        for step in self.steps:
            lines.append(f"  {step.status.marker} {step.category}")
            lines.append(f"           {step.message}")
            if step.suggestion:
                lines.append(f"           -> {step.suggestion}")
            lines.append("")

        if self.suggestions:
            lines.extend([RULE, "  Suggested Actions (priority order)", RULE])
            lines.extend(f"  {i}. {s}" for i, s in enumerate(self.suggestions, 1))
        return "\n".join(lines)


class HealthReport(BaseModel):
    collection: str
    total_chunks: int
    items: list[DiagnosticStep] = Field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return any(item.is_issue for item in self.items)

    def item(self, category: str) -> Optional[DiagnosticStep]:
        return next((i for i in self.items if i.category == category), None)

    def to_report(self) -> str:
        lines = [
            RULE,
            "  RAG Index Health Check",
            RULE,
            f'  Collection: "{self.collection}" ({self.total_chunks} chunks)',
            THIN_RULE,
        ]
        lines.extend(f"  {i.status.marker} {i.category}: {i.message}" for i in self.items)
        return "\n".join(lines)


class SplitterComparisonEntry(BaseModel):
    splitter_name: str
    total_chunks: int
    average_chunk_size: int
    target_found: bool
    target_chunk_index: int = -1
    target_chunk_size: int = 0
    target_density: float = 0.0


class SplitterComparison(BaseModel):
    target_text: str
    document_length: int
    entries: list[SplitterComparisonEntry] = Field(default_factory=list)

    def to_report(self) -> str:
        lines = [
            RULE,
            "  Splitter Comparison",
            RULE,
            f"  Document: {self.document_length} chars",
            f'  Target:   "{self.target_text}"',
            THIN_RULE,
            f"  {'Splitter':<35} | {'Chunks':>6} | {'Avg':>5} | {'Target Chunk':>12} | {'Density':>7}",
            f"  {'-' * 35} | {'-' * 6} | {'-' * 5} | {'-' * 12} | {'-' * 7}",
        ]
        for e in self.entries:
            if e.target_found:
                target_info = f"{e.target_chunk_size:5} chars"
                density_info = f"{e.target_density:5.1f}%"
            else:
                target_info = "NOT FOUND"
                density_info = "  N/A"
            lines.append(
                f"  {e.splitter_name:<35} | {e.total_chunks:>6} | {e.average_chunk_size:>5} "
                f"| {target_info:>12} | {density_info}"
            )
        return "\n".join(lines)
