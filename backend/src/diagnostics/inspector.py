import logging
from typing import Optional

from errors import UnsupportedStoreOperationError
from models.chunk import Document
from models.vector import VectorFilter
from pipelines.rag import RagPipeline
from splitters import BaseTextSplitter
from stores import IntrospectableVectorStore
from .models import ChunkMatch, ChunkOverlap, ChunkPreview, QueryDiagnosis, ScoredChunk, truncate

logger = logging.getLogger(__name__)

PREVIEW_CONTEXT_CHARS = 60
SCORED_PREVIEW_CHARS = 120
INTROSPECTION_CAPABILITY = "list_all_records/score_all_records"


def compute_overlap_length(previous: str, current: str) -> int:
    """Longest suffix of ``previous`` that is also a prefix of ``current``."""
    for length in range(min(len(previous), len(current)), 0, -1):
        if previous.endswith(current[:length]):
            return length
    return 0


def build_preview(content: str, match_index: int, match_length: int) -> str:
    """Window of text around a match, with ``...`` where content was cut."""
    start = max(0, match_index - PREVIEW_CONTEXT_CHARS)
    end = min(len(content), match_index + match_length + PREVIEW_CONTEXT_CHARS)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(content) else ""
    return f"{prefix}{content[start:end]}{suffix}"


class RagDiagnostics:
    """Read-only inspection of a pipeline's splitting and scoring.

    Store-backed operations need an ``IntrospectableVectorStore`` and raise
    ``UnsupportedStoreOperationError`` for any other store.
    """

    def __init__(self, pipeline: RagPipeline):
        self.pipeline = pipeline

    def require_introspectable_store(self, operation: str) -> IntrospectableVectorStore:
        store = self.pipeline.vector_store
        if not isinstance(store, IntrospectableVectorStore):
            raise UnsupportedStoreOperationError(
                operation, INTROSPECTION_CAPABILITY, type(store).__name__
            )
        return store

    def _collection(self, collection: Optional[str]) -> str:
        return collection or self.pipeline.options.default_collection

    def preview_chunks(
        self, document: Document, splitter: Optional[BaseTextSplitter] = None
    ) -> ChunkPreview:
        """Split a document without storing it and measure adjacent overlaps."""
        effective = splitter or self.pipeline.splitter
        chunks = effective.split(document)
        overlaps = [
            ChunkOverlap(
                chunk_index_a=i - 1,
                chunk_index_b=i,
                overlap_length=compute_overlap_length(chunks[i - 1].content, chunks[i].content),
            )
            for i in range(1, len(chunks))
        ]
        return ChunkPreview(
            chunks=chunks,
            document_length=len(document.content or ""),
            overlaps=overlaps,
            splitter_name=effective.describe(),
        )

    async def find_chunks_containing(
        self, text: str, collection: Optional[str] = None
    ) -> list[ChunkMatch]:
        """Case-insensitive substring scan over every stored record."""
        store = self.require_introspectable_store("find_chunks_containing")
        needle = text.lower()

        matches = []
        for record in await store.list_all_records(self._collection(collection)):
            index = record.content.lower().find(needle)
            if index >= 0:
                matches.append(
                    ChunkMatch(
                        record=record,
                        match_index=index,
                        preview=build_preview(record.content, index, len(text)),
                    )
                )
        return matches

    async def diagnose_query(
        self,
        query: str,
        target_text: Optional[str] = None,
        collection: Optional[str] = None,
    ) -> QueryDiagnosis:
        """Score every stored chunk against ``query`` and annotate each one.

        Scoring is restricted to the pipeline's default namespace, matching
        what ``RagPipeline.query`` can see.
        """
        store = self.require_introspectable_store("diagnose_query")
        options = self.pipeline.options

        query_vector = await self.pipeline.embedder.embed(query)
        namespace_filter = (
            VectorFilter.by_namespace(options.default_namespace)
            if options.default_namespace is not None
            else None
        )
        scored = await store.score_all_records(
            self._collection(collection), query_vector, namespace_filter
        )

        needle = target_text.lower() if target_text is not None else None
        results = [
            ScoredChunk(
                rank=rank,
                record=r.record,
                score=r.score,
                is_in_top_k=rank <= options.top_k,
                passes_min_score=options.min_score is None or r.score >= options.min_score,
                contains_target=needle is not None and needle in r.record.content.lower(),
                preview=truncate(r.record.content, SCORED_PREVIEW_CHARS),
            )
            for rank, r in enumerate(scored, 1)
        ]
        logger.debug(f"Scored {len(results)} chunks for diagnostic query")

        return QueryDiagnosis(
            query=query,
            target_text=target_text,
            top_k=options.top_k,
            min_score=options.min_score,
            total_chunks=len(results),
            scored_results=results,
        )
