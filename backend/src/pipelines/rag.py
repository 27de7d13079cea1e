import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from adapters import BaseEmbedder, BaseLLM
from config import find_config_path, load_config
from context import BaseContextBuilder, DefaultContextBuilder
from errors import EmbeddingError
from loaders import BaseDocumentLoader
from models.chunk import Chunk, Document
from models.vector import QueryResult, VectorFilter, VectorRecord
from splitters import BaseTextSplitter
from stores import BaseVectorStore
from .base import (
    RagPipelineOptions,
    create_context_builder_from_config,
    create_embedder_from_config,
    create_llm_from_config,
    create_splitter_from_config,
    create_vector_store_from_config,
)

logger = logging.getLogger(__name__)

DOCUMENT_ID_KEY = "document_id"


class RagPipeline:
    """Indexing and retrieval over injected splitter, embedder and store.

    Indexing runs split -> embed (in batches) -> upsert. Querying runs
    embed -> search -> build context. Provider and store exceptions
    propagate unchanged; nothing is retried or rolled back.

    Indexing awaits between documents and between embedding batches, so a
    cancelled task stops there. Records already upserted stay in place, and
    re-indexing the same document overwrites them by id.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        vector_store: BaseVectorStore,
        splitter: BaseTextSplitter,
        context_builder: Optional[BaseContextBuilder] = None,
        options: Optional[RagPipelineOptions] = None,
        llm: Optional[BaseLLM] = None,
    ):
        self.embedder = embedder
        self.vector_store = vector_store
        self.splitter = splitter
        self.context_builder = context_builder or DefaultContextBuilder()
        self.options = options or RagPipelineOptions()
        self.llm = llm

    @classmethod
    def from_config(cls, config: dict[str, Any], config_path: Path) -> "RagPipeline":
        """Create pipeline from configuration dictionary."""
        embedder = create_embedder_from_config(config)
        return cls(
            embedder=embedder,
            vector_store=create_vector_store_from_config(config, config_path, embedder),
            splitter=create_splitter_from_config(config),
            context_builder=create_context_builder_from_config(config),
            options=RagPipelineOptions.from_config(config),
            llm=create_llm_from_config(config),
        )

    def _collection(self, collection: Optional[str]) -> str:
        return collection or self.options.default_collection

    def _to_record(self, chunk: Chunk, vector: list[float]) -> VectorRecord:
        metadata = dict(chunk.metadata)
        metadata[DOCUMENT_ID_KEY] = chunk.document_id
        return VectorRecord(
            id=chunk.id,
            vector=vector,
            content=chunk.content,
            metadata=metadata,
            namespace=self.options.default_namespace,
        )

    async def _embed_chunks(self, chunks: list[Chunk]) -> list[list[float]]:
        batch_size = self.options.embedding_batch_size
        vectors: list[list[float]] = []
        for start in range(0, len(chunks), batch_size):
            batch = [c.content for c in chunks[start : start + batch_size]]
            logger.debug(f"Embedding batch of {len(batch)} chunks (offset {start})")
            vectors.extend(await self.embedder.embed_batch(batch))
            await asyncio.sleep(0)
        return vectors

    async def _index_one(
        self, document: Document, splitter: BaseTextSplitter, collection: str
    ) -> int:
        chunks = splitter.split(document)
        if not chunks:
            logger.debug(f"Document {document.id} produced no chunks")
            return 0

        vectors = await self._embed_chunks(chunks)
        if len(vectors) != len(chunks):
            raise EmbeddingError(
                f"Expected {len(chunks)} embeddings for document {document.id}, received {len(vectors)}",
                provider=type(self.embedder).__name__,
            )
        records = [self._to_record(c, v) for c, v in zip(chunks, vectors)]
        await self.vector_store.upsert_batch(collection, records)
        logger.info(f"Indexed document {document.id}: {len(records)} chunks into {collection}")
        return len(records)

    async def index_document(
        self,
        document: Document,
        splitter: Optional[BaseTextSplitter] = None,
        collection: Optional[str] = None,
    ) -> int:
        """Split, embed and store one document.

        Args:
            document: Document to index.
            splitter: Overrides the pipeline's splitter for this call.
            collection: Target collection, created if missing.

        Returns:
            Number of chunks stored.
        """
        target = self._collection(collection)
        await self.vector_store.create_collection(target)
        return await self._index_one(document, splitter or self.splitter, target)

    async def index_documents(
        self,
        documents: list[Document],
        splitter: Optional[BaseTextSplitter] = None,
        collection: Optional[str] = None,
    ) -> dict[str, int]:
        """Index documents sequentially.

        Returns:
            Dict with "documents" and "chunks" counts.
        """
        target = self._collection(collection)
        await self.vector_store.create_collection(target)

        total_chunks = 0
        for document in documents:
            total_chunks += await self._index_one(document, splitter or self.splitter, target)
            await asyncio.sleep(0)

        logger.info(f"Indexed {len(documents)} documents ({total_chunks} chunks) into {target}")
        return {"documents": len(documents), "chunks": total_chunks}

    async def index_from_loader(
        self,
        loader: BaseDocumentLoader,
        source: Path | str,
        splitter: Optional[BaseTextSplitter] = None,
        collection: Optional[str] = None,
    ) -> dict[str, int]:
        documents = await asyncio.to_thread(loader.load, source)
        return await self.index_documents(documents, splitter=splitter, collection=collection)

    def _effective_filter(self, vector_filter: Optional[VectorFilter]) -> Optional[VectorFilter]:
        updates: dict[str, Any] = {}
        if self.options.min_score is not None:
            updates["min_score"] = self.options.min_score
        # An explicit namespace on the caller's filter wins over the default.
        namespace = self.options.default_namespace
        if namespace is not None and (vector_filter is None or vector_filter.namespace is None):
            updates["namespace"] = namespace

        if not updates:
            return vector_filter
        return (vector_filter or VectorFilter()).model_copy(update=updates)

    async def query(
        self,
        query: str,
        collection: Optional[str] = None,
        top_k: Optional[int] = None,
        vector_filter: Optional[VectorFilter] = None,
    ) -> QueryResult:
        """Retrieve the closest chunks and build the prompt context."""
        k = top_k or self.options.top_k
        logger.info(f"Embedding query: {query[:50]}...")

        query_vector = await self.embedder.embed(query)
        results = await self.vector_store.search(
            self._collection(collection), query_vector, k, self._effective_filter(vector_filter)
        )
        logger.info(f"Found {len(results)} results")

        context = self.context_builder.build_context(query, results)
        return QueryResult(query=query, context=context, results=results)

    async def query_and_generate(
        self,
        query: str,
        llm: Optional[BaseLLM] = None,
        collection: Optional[str] = None,
        top_k: Optional[int] = None,
        vector_filter: Optional[VectorFilter] = None,
    ) -> str:
        """Run ``query`` and send the assembled context to a completion provider.

        Raises:
            ValueError: If no LLM is given and none was configured.
        """
        completion = llm or self.llm
        if completion is None:
            raise ValueError("query_and_generate requires an LLM")

        result = await self.query(query, collection, top_k, vector_filter)
        logger.info("Generating response...")
        return await completion.generate(result.context)

    async def delete_document(self, document_id: str, collection: Optional[str] = None) -> int:
        """Delete every chunk stored for a document. Returns the number removed."""
        removed = await self.vector_store.delete_by_filter(
            self._collection(collection), VectorFilter.by_metadata(DOCUMENT_ID_KEY, document_id)
        )
        logger.info(f"Deleted {removed} chunks of document {document_id}")
        return removed


def load_pipeline(config_path: Optional[Path] = None) -> RagPipeline:
    """Create a pipeline from config.toml.

    Args:
        config_path: Explicit config file, otherwise the usual locations are searched.

    Returns:
        RagPipeline instance.
    """
    path = find_config_path(config_path)
    return RagPipeline.from_config(load_config(path), path)
