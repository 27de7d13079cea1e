import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from adapters import BaseLLM
from models.chunk import Document
from models.vector import QueryResult, VectorSearchResult
from stores import BaseVectorStore
from .rag import RagPipeline

logger = logging.getLogger(__name__)


class RagStore:
    """A built index: a pipeline plus the collection it was indexed into."""

    def __init__(self, pipeline: RagPipeline, collection: Optional[str] = None):
        self.pipeline = pipeline
        self.collection = collection or pipeline.options.default_collection

    @property
    def vector_store(self) -> BaseVectorStore:
        return self.pipeline.vector_store

    @classmethod
    async def build(
        cls,
        pipeline: RagPipeline,
        documents: list[Document],
        collection: Optional[str] = None,
    ) -> "RagStore":
        """Index ``documents`` and return the resulting store."""
        store = cls(pipeline, collection)
        await store.index_documents(documents)
        return store

    async def index_documents(self, documents: list[Document]) -> dict[str, int]:
        return await self.pipeline.index_documents(documents, collection=self.collection)

    async def query(self, query: str, top_k: Optional[int] = None) -> QueryResult:
        return await self.pipeline.query(query, collection=self.collection, top_k=top_k)

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> list[VectorSearchResult]:
        """Search results only, without building context."""
        return (await self.query(query, top_k)).results


class LazyRagStore:
    """Builds a RagStore on first use, exactly once.

    Concurrent first callers wait on the same lock; whoever gets it first
    runs the factory and every caller receives the memoized store. If the
    build raises, nothing is memoized and the next caller retries.
    """

    def __init__(self, factory: Callable[[], Awaitable[RagStore]]):
        self._factory = factory
        self._store: Optional[RagStore] = None
        self._lock = asyncio.Lock()

    @property
    def is_built(self) -> bool:
        return self._store is not None

    async def get(self) -> RagStore:
        if self._store is not None:
            return self._store
        async with self._lock:
            if self._store is None:
                logger.info("Building RAG index on first use")
                self._store = await self._factory()
        return self._store


class RagEnabledService:
    """Retrieval-augmented completion: query the store, then ask the LLM."""

    def __init__(self, llm: BaseLLM, store: LazyRagStore | RagStore):
        self.llm = llm
        self._store = store

    async def _resolve(self) -> RagStore:
        if isinstance(self._store, LazyRagStore):
            return await self._store.get()
        return self._store

    async def retrieve(self, query: str) -> QueryResult:
        store = await self._resolve()
        return await store.query(query)

    async def complete(self, query: str, **kwargs: Any) -> str:
        """Answer ``query`` with retrieved context prepended to the prompt."""
        result = await self.retrieve(query)
        return await self.llm.generate(result.context, **kwargs)
