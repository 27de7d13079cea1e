import fcntl
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import faiss
import numpy as np

from errors import CollectionNotFoundError, StoreError
from models.vector import VectorFilter, VectorRecord, VectorSearchResult
from .base import IntrospectableVectorStore, rank_results

logger = logging.getLogger(__name__)


@dataclass
class _Collection:
    index: faiss.IndexIDMap2
    # record id -> {"label", "content", "metadata", "namespace"}
    payloads: dict[str, dict[str, Any]] = field(default_factory=dict)
    next_label: int = 0


class FAISSVectorStore(IntrospectableVectorStore):
    """FAISS-based vector store with per-collection persistence.

    Each collection is an ``IndexIDMap2`` over an inner-product flat index.
    Vectors are L2-normalized before insertion and search, so inner-product
    scores are cosine similarities. Record payloads live in a JSON sidecar
    next to the index file. When ``directory`` is ``None`` the store is
    memory-only.
    """

    def __init__(self, dimension: int, directory: Optional[Path] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.dimension = dimension
        self._directory = Path(directory) if directory else None
        self._collections: dict[str, _Collection] = {}

    def _index_path(self, name: str) -> Path:
        return self._directory / f"{name}.index"

    def _metadata_path(self, name: str) -> Path:
        return self._directory / f"{name}.json"

    def _new_index(self) -> faiss.IndexIDMap2:
        return faiss.IndexIDMap2(faiss.IndexFlatIP(self.dimension))

    def _load(self, name: str) -> Optional[_Collection]:
        if name in self._collections:
            return self._collections[name]
        if not self._directory or not self._metadata_path(name).exists():
            return None

        with open(self._metadata_path(name), "r") as f:
            data = json.load(f)
        index_path = self._index_path(name)
        index = faiss.read_index(str(index_path)) if index_path.exists() else self._new_index()
        if index.d != self.dimension:
            raise StoreError(
                f"Index for {name} has dimension {index.d}, expected {self.dimension}",
                collection=name,
            )
        collection = _Collection(index=index, payloads=data["records"], next_label=data["next_label"])
        self._collections[name] = collection
        return collection

    def _require(self, name: str) -> _Collection:
        collection = self._load(name)
        if collection is None:
            raise CollectionNotFoundError(name)
        return collection

    def _acquire_lock(self, name: str) -> None:
        if self._directory:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._lock_file = open(self._metadata_path(name).with_suffix(".lock"), "w")
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX)

    def _release_lock(self) -> None:
        if hasattr(self, "_lock_file"):
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            self._lock_file.close()
            del self._lock_file

    def save(self, name: str) -> None:
        if not self._directory or name not in self._collections:
            return
        collection = self._collections[name]
        self._directory.mkdir(parents=True, exist_ok=True)
        faiss.write_index(collection.index, str(self._index_path(name)))
        with open(self._metadata_path(name), "w") as f:
            json.dump(
                {"next_label": collection.next_label, "records": collection.payloads},
                f,
                indent=2,
            )

    def _normalized(self, vectors: list[list[float]]) -> np.ndarray:
        matrix = np.ascontiguousarray(np.array(vectors, dtype=np.float32).reshape(-1, self.dimension))
        faiss.normalize_L2(matrix)
        return matrix

    def _to_record(self, collection: _Collection, record_id: str) -> VectorRecord:
        payload = collection.payloads[record_id]
        vector = collection.index.reconstruct(int(payload["label"]))
        return VectorRecord(
            id=record_id,
            vector=vector.tolist(),
            content=payload["content"],
            metadata=payload["metadata"],
            namespace=payload["namespace"],
        )

    def _remove_labels(self, collection: _Collection, labels: list[int]) -> None:
        if labels:
            collection.index.remove_ids(np.array(labels, dtype=np.int64))

    async def create_collection(self, name: str) -> None:
        if self._load(name) is not None:
            return
        self._collections[name] = _Collection(index=self._new_index())
        self._acquire_lock(name)
        try:
            self.save(name)
        finally:
            self._release_lock()
        logger.info(f"Created FAISS collection {name} (dimension {self.dimension})")

    async def collection_exists(self, name: str) -> bool:
        return self._load(name) is not None

    async def delete_collection(self, name: str) -> None:
        self._collections.pop(name, None)
        if self._directory:
            for path in (self._index_path(name), self._metadata_path(name)):
                path.unlink(missing_ok=True)

    async def upsert_batch(self, collection: str, records: list[VectorRecord]) -> None:
        if not records:
            return
        # Later duplicates of an id replace earlier ones within the batch.
        records = list({r.id: r for r in records}.values())
        target = self._require(collection)
        for record in records:
            if len(record.vector) != self.dimension:
                raise StoreError(
                    f"Record {record.id} has dimension {len(record.vector)}, expected {self.dimension}",
                    collection=collection,
                )

        self._acquire_lock(collection)
        try:
            replaced = [
                int(target.payloads[r.id]["label"]) for r in records if r.id in target.payloads
            ]
            self._remove_labels(target, replaced)

            labels = []
            for record in records:
                label = target.next_label
                target.next_label += 1
                labels.append(label)
                target.payloads[record.id] = {
                    "label": label,
                    "content": record.content,
                    "metadata": dict(record.metadata),
                    "namespace": record.namespace,
                }

            target.index.add_with_ids(
                self._normalized([r.vector for r in records]),
                np.array(labels, dtype=np.int64),
            )
            self.save(collection)
        finally:
            self._release_lock()

    def _score(
        self,
        collection: str,
        query_vector: list[float],
        vector_filter: Optional[VectorFilter],
        top_k: Optional[int],
    ) -> list[VectorSearchResult]:
        target = self._load(collection)
        if target is None or target.index.ntotal == 0:
            return []

        # Exhaustive search so filters apply before the top-k cutoff.
        scores, labels = target.index.search(self._normalized([query_vector]), target.index.ntotal)
        by_label = {int(p["label"]): rid for rid, p in target.payloads.items()}

        records = []
        kept_scores = []
        for score, label in zip(scores[0], labels[0]):
            record_id = by_label.get(int(label))
            if record_id is None:
                continue
            record = self._to_record(target, record_id)
            if vector_filter is not None and not vector_filter.matches(record):
                continue
            records.append(record)
            kept_scores.append(float(score))

        min_score = vector_filter.min_score if vector_filter else None
        return rank_results(records, np.array(kept_scores), top_k=top_k, min_score=min_score)

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
        target = self._load(collection)
        if target is None:
            return []
        return [self._to_record(target, rid) for rid in target.payloads]

    async def get(self, collection: str, record_id: str) -> Optional[VectorRecord]:
        target = self._load(collection)
        if target is None or record_id not in target.payloads:
            return None
        return self._to_record(target, record_id)

    async def delete(self, collection: str, record_id: str) -> bool:
        target = self._load(collection)
        if target is None or record_id not in target.payloads:
            return False
        self._acquire_lock(collection)
        try:
            payload = target.payloads.pop(record_id)
            self._remove_labels(target, [int(payload["label"])])
            self.save(collection)
        finally:
            self._release_lock()
        return True

    async def delete_by_filter(self, collection: str, vector_filter: VectorFilter) -> int:
        target = self._load(collection)
        if target is None:
            return 0
        doomed = [rid for rid in target.payloads if vector_filter.matches(self._to_record(target, rid))]
        if not doomed:
            return 0

        self._acquire_lock(collection)
        try:
            labels = [int(target.payloads.pop(rid)["label"]) for rid in doomed]
            self._remove_labels(target, labels)
            self.save(collection)
        finally:
            self._release_lock()
        logger.info(f"Deleted {len(doomed)} records from {collection}")
        return len(doomed)

    async def count(self, collection: str) -> int:
        target = self._load(collection)
        return target.index.ntotal if target else 0
