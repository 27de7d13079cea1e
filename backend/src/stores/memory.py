import logging
from typing import Any, Optional

import numpy as np

from errors import CollectionNotFoundError
from models.vector import VectorFilter, VectorRecord, VectorSearchResult
from .base import IntrospectableVectorStore, cosine_scores, rank_results

logger = logging.getLogger(__name__)


class InMemoryVectorStore(IntrospectableVectorStore):
    """Process-local vector store with exhaustive cosine-similarity search.

    Records are copied on the way in and out, so callers never share state
    with the store.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._collections: dict[str, dict[str, VectorRecord]] = {}

    def _records(self, collection: str) -> dict[str, VectorRecord]:
        if collection not in self._collections:
            raise CollectionNotFoundError(collection)
        return self._collections[collection]

    async def create_collection(self, name: str) -> None:
        self._collections.setdefault(name, {})

    async def collection_exists(self, name: str) -> bool:
        return name in self._collections

    async def delete_collection(self, name: str) -> None:
        self._collections.pop(name, None)

    async def upsert_batch(self, collection: str, records: list[VectorRecord]) -> None:
        stored = self._records(collection)
        for record in records:
            stored[record.id] = record.model_copy(deep=True)
        logger.debug(f"Upserted {len(records)} records into {collection}")

    def _score(
        self,
        collection: str,
        query_vector: list[float],
        vector_filter: Optional[VectorFilter],
        top_k: Optional[int],
    ) -> list[VectorSearchResult]:
        candidates = [
            r
            for r in self._collections.get(collection, {}).values()
            if vector_filter is None or vector_filter.matches(r)
        ]
        if not candidates:
            return []

        matrix = np.array([r.vector for r in candidates], dtype=np.float64)
        scores = cosine_scores(matrix, np.array(query_vector, dtype=np.float64))
        min_score = vector_filter.min_score if vector_filter else None
        results = rank_results(candidates, scores, top_k=top_k, min_score=min_score)
        return [r.model_copy(deep=True) for r in results]

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
        vector_filter: Optional[VectorFilter] = None,
    ) -> list[VectorSearchResult]:
        if top_k <= 0:
            return []
        return self._score(collection, query_vector, vector_filter, top_k)

    async def score_all_records(
        self,
        collection: str,
        query_vector: list[float],
        vector_filter: Optional[VectorFilter] = None,
    ) -> list[VectorSearchResult]:
        return self._score(collection, query_vector, vector_filter, None)

    async def list_all_records(self, collection: str) -> list[VectorRecord]:
        return [r.model_copy(deep=True) for r in self._collections.get(collection, {}).values()]

    async def get(self, collection: str, record_id: str) -> Optional[VectorRecord]:
        record = self._collections.get(collection, {}).get(record_id)
        return record.model_copy(deep=True) if record else None

    async def delete(self, collection: str, record_id: str) -> bool:
        return self._collections.get(collection, {}).pop(record_id, None) is not None

    async def delete_by_filter(self, collection: str, vector_filter: VectorFilter) -> int:
        stored = self._collections.get(collection, {})
        doomed = [rid for rid, r in stored.items() if vector_filter.matches(r)]
        for record_id in doomed:
            del stored[record_id]
        return len(doomed)

    async def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))
