import logging
from typing import Optional

import numpy as np

from models.chunk import Document
from pipelines.rag import RagPipeline
from splitters import BaseTextSplitter
from .inspector import RagDiagnostics
from .models import (
    ChunkMatch,
    ChunkPreview,
    DiagnosticStep,
    HealthReport,
    MissingAnalysis,
    QueryDiagnosis,
    SplitterComparison,
    SplitterComparisonEntry,
    truncate,
)

logger = logging.getLogger(__name__)

LOW_DENSITY_PERCENT = 3.0
MODERATE_DENSITY_PERCENT = 10.0
SMALLER_CHUNKS_DENSITY_PERCENT = 5.0
TINY_CHUNK_CHARS = 50
VARIANCE_RATIO = 0.5


def keyword_density(target: str, content: str) -> float:
    """Share of ``content`` taken up by ``target``, as a percentage."""
    if not content:
        return 0.0
    return len(target) / len(content) * 100


class DiagnosticSession:
    """Root-cause analysis, health checks and splitter comparison for a pipeline.

    Example::

        session = DiagnosticSession(pipeline)
        analysis = await session.why_missing("latest salary?", "$1")
        print(analysis.to_report())
    """

    def __init__(self, pipeline: RagPipeline):
        self.pipeline = pipeline
        self.diagnostics = RagDiagnostics(pipeline)

    def preview_chunks(
        self, document: Document, splitter: Optional[BaseTextSplitter] = None
    ) -> ChunkPreview:
        return self.diagnostics.preview_chunks(document, splitter)

    async def find_chunks_containing(
        self, text: str, collection: Optional[str] = None
    ) -> list[ChunkMatch]:
        return await self.diagnostics.find_chunks_containing(text, collection)

    async def diagnose_query(
        self, query: str, target_text: Optional[str] = None, collection: Optional[str] = None
    ) -> QueryDiagnosis:
        return await self.diagnostics.diagnose_query(query, target_text, collection)

    def _character_chunk_size(self) -> Optional[int]:
        splitter = self.pipeline.splitter
        return splitter.chunk_size if splitter.measures_characters else None

    async def why_missing(
        self, query: str, expected_text: str, collection: Optional[str] = None
    ) -> MissingAnalysis:
        """Explain why ``expected_text`` is not retrieved for ``query``.

        Steps run in order (indexing, scoring, keyword density, top-k rank,
        min-score filter, competing chunks) and stop early when the text was
        never indexed or never scored.
        """
        steps: list[DiagnosticStep] = []
        suggestions: list[str] = []
        top_k = self.pipeline.options.top_k
        min_score = self.pipeline.options.min_score
        short_expected = truncate(expected_text, 40)

        matches = await self.diagnostics.find_chunks_containing(expected_text, collection)
        if not matches:
            steps.append(
                DiagnosticStep.failed(
                    "Indexing",
                    f'"{short_expected}" was NOT found in any stored chunk.',
                    "The text was never indexed, or the splitter cut through it.",
                )
            )
            suggestions.append("Verify the document was included in indexing.")
            suggestions.append(
                "Use preview_chunks() to check whether the splitter breaks this text across chunks."
            )
            return MissingAnalysis(
                query=query, expected_text=expected_text, steps=steps, suggestions=suggestions
            )

        primary = matches[0].record
        steps.append(
            DiagnosticStep.passed(
                "Indexing",
                f'Found in {len(matches)} chunk(s). Primary: "{primary.id}" ({len(primary.content)} chars).',
            )
        )

        detail = await self.diagnostics.diagnose_query(query, expected_text, collection)
        target = detail.target
        if target is None:
            steps.append(
                DiagnosticStep.failed(
                    "Scoring",
                    "Target chunk was not found among the scored results.",
                    "The chunk may be outside the pipeline's namespace, or the text was split "
                    "across chunk boundaries.",
                )
            )
            return MissingAnalysis(
                query=query,
                expected_text=expected_text,
                steps=steps,
                suggestions=suggestions,
                query_detail=detail,
            )

        content_length = len(target.record.content)
        density = keyword_density(expected_text, target.record.content)
        chunk_size = self._character_chunk_size()

        if density < LOW_DENSITY_PERCENT:
            steps.append(
                DiagnosticStep.failed(
                    "Keyword Density",
                    f'{density:.1f}% - "{truncate(expected_text, 30)}" ({len(expected_text)} chars) '
                    f"is buried in a {content_length}-char chunk. The embedding is dominated "
                    "by surrounding content.",
                    "Reduce chunk_size to isolate the target, or extract it as structured metadata.",
                )
            )
            if chunk_size:
                suggestions.append(
                    f"Reduce chunk_size (current: {chunk_size}). Try {chunk_size // 2}."
                )
        elif density < MODERATE_DENSITY_PERCENT:
            steps.append(
                DiagnosticStep.warning(
                    "Keyword Density",
                    f"{density:.1f}% - moderate. Target is a relatively small part of the chunk.",
                )
            )
        else:
            steps.append(DiagnosticStep.passed("Keyword Density", f"{density:.1f}% - good coverage."))

        if target.is_in_top_k:
            steps.append(
                DiagnosticStep.passed(
                    "TopK Ranking",
                    f"Rank #{target.rank} is within top_k={top_k}. Score: {target.score:.4f}.",
                )
            )
        else:
            scored = detail.scored_results
            cutoff = scored[top_k - 1].score if len(scored) >= top_k else 0.0
            steps.append(
                DiagnosticStep.failed(
                    "TopK Ranking",
                    f"Rank #{target.rank} is OUTSIDE top_k={top_k}. Score: {target.score:.4f}, "
                    f"cutoff: {cutoff:.4f} (gap: {cutoff - target.score:.4f}).",
                    f"Increase top_k to at least {target.rank}, or improve chunking to raise the score.",
                )
            )
            suggestions.append(f"Increase top_k from {top_k} to at least {target.rank}.")
            if density < SMALLER_CHUNKS_DENSITY_PERCENT:
                suggestions.append(
                    "Low keyword density is likely causing the low score. Smaller chunks would help."
                )

        if min_score is not None:
            if target.passes_min_score:
                steps.append(
                    DiagnosticStep.passed(
                        "MinScore Filter", f"Score {target.score:.4f} >= min_score {min_score:.3f}."
                    )
                )
            else:
                lowered = max(0.0, target.score - 0.01)
                steps.append(
                    DiagnosticStep.failed(
                        "MinScore Filter",
                        f"Score {target.score:.4f} < min_score {min_score:.3f}. "
                        "Filtered out even if within top_k.",
                        f"Lower min_score to {lowered:.3f} or below.",
                    )
                )
                suggestions.append(f"Lower min_score from {min_score:.3f} to {lowered:.3f}.")

        if not target.is_in_top_k and detail.scored_results:
            competitors = detail.scored_results[:top_k]
            listing = "\n".join(
                f'    #{c.rank} (score={c.score:.4f}): "{truncate(c.preview, 60)}"'
                for c in competitors
            )
            steps.append(
                DiagnosticStep.info(
                    "Competing Chunks",
                    f"These {len(competitors)} chunks outranked your target:\n{listing}",
                )
            )

        return MissingAnalysis(
            query=query,
            expected_text=expected_text,
            steps=steps,
            suggestions=suggestions,
            query_detail=detail,
        )

    async def health_check(self, collection: Optional[str] = None) -> HealthReport:
        """Flag empty indexes, uneven or extreme chunk sizes, and duplicate chunks."""
        store = self.diagnostics.require_introspectable_store("health_check")
        name = collection or self.pipeline.options.default_collection
        records = await store.list_all_records(name)
        items: list[DiagnosticStep] = []

        if not records:
            items.append(DiagnosticStep.failed("Chunk Count", "No chunks found. Index is empty."))
            return HealthReport(collection=name, total_chunks=0, items=items)

        items.append(DiagnosticStep.passed("Chunk Count", f"{len(records)} chunks indexed."))

        sizes = np.array([len(r.content) for r in records], dtype=np.float64)
        mean = float(sizes.mean())
        stddev = float(sizes.std())
        items.append(
            DiagnosticStep.info(
                "Chunk Sizes",
                f"Min={int(sizes.min())}, Max={int(sizes.max())}, Avg={mean:.0f}, StdDev={stddev:.0f} chars.",
            )
        )

        if stddev > mean * VARIANCE_RATIO:
            items.append(
                DiagnosticStep.warning(
                    "Size Variance",
                    f"High variance (StdDev={stddev:.0f} vs Avg={mean:.0f}). "
                    "Very uneven chunk sizes hurt search consistency.",
                )
            )

        chunk_size = self._character_chunk_size()
        if chunk_size:
            oversized = int((sizes > chunk_size).sum())
            if oversized:
                items.append(
                    DiagnosticStep.warning(
                        "Oversized Chunks",
                        f"{oversized} chunk(s) exceed chunk_size={chunk_size}. These may lose "
                        "information at the tail due to embedding model token limits.",
                    )
                )

        tiny = int((sizes < TINY_CHUNK_CHARS).sum())
        if tiny:
            items.append(
                DiagnosticStep.warning(
                    "Tiny Chunks",
                    f"{tiny} chunk(s) are under {TINY_CHUNK_CHARS} chars. "
                    "These embed poorly and add noise to search results.",
                )
            )

        seen: set[str] = set()
        duplicates = 0
        for record in records:
            if record.content in seen:
                duplicates += 1
            seen.add(record.content)
        if duplicates:
            items.append(
                DiagnosticStep.warning(
                    "Duplicates",
                    f"{duplicates} exact duplicate chunk(s) found. These waste storage "
                    "and can skew search results.",
                )
            )
        else:
            items.append(DiagnosticStep.passed("Duplicates", "No exact duplicates detected."))

        logger.info(f"Health check of {name}: {len(records)} chunks, {len(items)} items")
        return HealthReport(collection=name, total_chunks=len(records), items=items)

    def compare_splitters(
        self, document: Document, target_text: str, *splitters: BaseTextSplitter
    ) -> SplitterComparison:
        """Split one document several ways and report where the target lands."""
        needle = target_text.lower()
        entries = []

        for splitter in splitters:
            preview = self.diagnostics.preview_chunks(document, splitter)
            found = next(
                (c for c in preview.chunks if needle in c.content.lower()),
                None,
            )
            entries.append(
                SplitterComparisonEntry(
                    splitter_name=preview.splitter_name,
                    total_chunks=preview.total_chunks,
                    average_chunk_size=preview.average_chunk_size,
                    target_found=found is not None,
                    target_chunk_index=found.index if found else -1,
                    target_chunk_size=len(found.content) if found else 0,
                    target_density=keyword_density(target_text, found.content) if found else 0.0,
                )
            )

        return SplitterComparison(
            target_text=target_text,
            document_length=len(document.content or ""),
            entries=entries,
        )
