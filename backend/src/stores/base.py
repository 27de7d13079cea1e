from abc import ABC, abstractmethod
from typing import Any, Optional

import numpy as np

from models.vector import VectorFilter, VectorRecord, VectorSearchResult


class BaseVectorStore(ABC):
    """Abstract base class for vector stores.

    Records live in named collections. ``create_collection`` is idempotent
    and ``search`` returns results in descending score order.
    """

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs

    @abstractmethod
    async def create_collection(self, name: str) -> None:
        pass

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        pass

    @abstractmethod
    async def upsert_batch(self, collection: str, records: list[VectorRecord]) -> None:
        """Insert or replace records by id."""
        pass

    async def upsert(self, collection: str, record: VectorRecord) -> None:
        await self.upsert_batch(collection, [record])

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
        vector_filter: Optional[VectorFilter] = None,
    ) -> list[VectorSearchResult]:
        pass

    @abstractmethod
    async def get(self, collection: str, record_id: str) -> Optional[VectorRecord]:
        pass

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> bool:
        """Delete one record. Returns whether it existed."""
        pass

    @abstractmethod
    async def delete_by_filter(self, collection: str, vector_filter: VectorFilter) -> int:
        """Delete every record matching the filter. Returns the number removed."""
        pass

    @abstractmethod
    async def count(self, collection: str) -> int:
        pass


class IntrospectableVectorStore(BaseVectorStore):
    """A store that can enumerate and exhaustively score its records."""

    @abstractmethod
    async def list_all_records(self, collection: str) -> list[VectorRecord]:
        pass

    @abstractmethod
    async def score_all_records(
        self,
        collection: str,
        query_vector: list[float],
        vector_filter: Optional[VectorFilter] = None,
    ) -> list[VectorSearchResult]:
        """Score every record against the query, highest first, with no top-k cutoff."""
        pass


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Cosine similarity of each row of ``matrix`` against ``query``.

    Zero vectors score 0.0 rather than NaN.
    """
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores


def rank_results(
    records: list[VectorRecord],
    scores: np.ndarray,
    top_k: Optional[int] = None,
    min_score: Optional[float] = None,
) -> list[VectorSearchResult]:
    """Pair records with scores, drop those under ``min_score`` and sort descending."""
    order = np.argsort(-scores, kind="stable")
    results = []
    for idx in order:
        score = float(scores[idx])
        if min_score is not None and score < min_score:
            continue
        results.append(VectorSearchResult(record=records[idx], score=score))
        if top_k is not None and len(results) >= top_k:
            break
    return results
