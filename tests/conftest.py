import sys
from pathlib import Path
from typing import Any, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend" / "src"))

from adapters.base import BaseEmbedder, BaseLLM
from adapters.local import LocalEmbedder
from models.vector import VectorFilter, VectorRecord, VectorSearchResult
from pipelines import RagPipeline, RagPipelineOptions
from splitters import RecursiveTextSplitter
from stores import BaseVectorStore, InMemoryVectorStore


class MockEmbedder(BaseEmbedder):
    """Mock embedder that records every batch it receives."""

    def __init__(self, dimension: int = 8, **kwargs: Any):
        super().__init__("mock-embedder", **kwargs)
        self._dimension = dimension
        self.batches: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        return [0.1] * self._dimension

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [[0.1] * self._dimension for _ in texts]


class MockLLM(BaseLLM):
    """Mock LLM that remembers the prompts it was given."""

    def __init__(self, model: str = "mock-llm", **kwargs: Any):
        super().__init__(model, **kwargs)
        self.prompts: list[str] = []

    async def generate(self, prompt: str, **kwargs: Any) -> str:
        self.prompts.append(prompt)
        return "Mock response"


class RecordingVectorStore(InMemoryVectorStore):
    """In-memory store that counts upsert_batch calls."""

    def __init__(self) -> None:
        super().__init__()
        self.upsert_calls: list[list[VectorRecord]] = []

    async def upsert_batch(self, collection: str, records: list[VectorRecord]) -> None:
        self.upsert_calls.append(list(records))
        await super().upsert_batch(collection, records)


class PlainVectorStore(BaseVectorStore):
    """Store that only implements the basic contract, not introspection."""

    def __init__(self) -> None:
        super().__init__()
        self._inner = InMemoryVectorStore()

    async def create_collection(self, name: str) -> None:
        await self._inner.create_collection(name)

    async def collection_exists(self, name: str) -> bool:
        return await self._inner.collection_exists(name)

    async def delete_collection(self, name: str) -> None:
        await self._inner.delete_collection(name)

    async def upsert_batch(self, collection: str, records: list[VectorRecord]) -> None:
        await self._inner.upsert_batch(collection, records)

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        top_k: int = 5,
        vector_filter: Optional[VectorFilter] = None,
    ) -> list[VectorSearchResult]:
        return await self._inner.search(collection, query_vector, top_k, vector_filter)

    async def get(self, collection: str, record_id: str) -> Optional[VectorRecord]:
        return await self._inner.get(collection, record_id)

    async def delete(self, collection: str, record_id: str) -> bool:
        return await self._inner.delete(collection, record_id)

    async def delete_by_filter(self, collection: str, vector_filter: VectorFilter) -> int:
        return await self._inner.delete_by_filter(collection, vector_filter)

    async def count(self, collection: str) -> int:
        return await self._inner.count(collection)


@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=8)


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def local_embedder() -> LocalEmbedder:
    return LocalEmbedder(dimension=256)


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def local_pipeline(local_embedder: LocalEmbedder, memory_store: InMemoryVectorStore) -> RagPipeline:
    return RagPipeline(
        embedder=local_embedder,
        vector_store=memory_store,
        splitter=RecursiveTextSplitter(chunk_size=200, chunk_overlap=20),
        options=RagPipelineOptions(top_k=3),
    )


@pytest.fixture
def temp_storage_dir(tmp_path: Path) -> Path:
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "local"
model = "local-hashing"
dimension = 64

[splitter]
type = "character"
chunk_size = 300
chunk_overlap = 30

[storage]
provider = "faiss"
directory = "storage"

[pipeline]
collection = "docs"
batch_size = 10

[retrieval]
top_k = 4
min_score = 0.1
include_scores = true
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
