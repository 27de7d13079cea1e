from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from adapters.local import LocalEmbedder
from conftest import MockEmbedder, MockLLM, RecordingVectorStore
from diagnostics import RagDiagnostics
from errors import EmbeddingError
from models import Document, VectorFilter
from pipelines import RagPipeline, RagPipelineOptions, load_pipeline
from splitters import CharacterTextSplitter, MarkdownTextSplitter, RecursiveTextSplitter
from stores import FAISSVectorStore, InMemoryVectorStore

FACTS = [
    Document(id="python", source="python.txt", content="Python is a programming language created by Guido van Rossum."),
    Document(id="faiss", source="faiss.txt", content="FAISS is a library for efficient similarity search of dense vectors."),
    Document(id="paris", source="paris.txt", content="Paris is the capital city of France and sits on the Seine."),
]


@pytest.fixture
def recording_store() -> RecordingVectorStore:
    return RecordingVectorStore()


NOTES = Document(id="notes", source="notes.txt", content="Weekly notes about the office coffee machine.")


def namespaced_pipeline(store: InMemoryVectorStore, namespace: str) -> RagPipeline:
    return RagPipeline(
        embedder=LocalEmbedder(dimension=256),
        vector_store=store,
        splitter=RecursiveTextSplitter(chunk_size=200, chunk_overlap=20),
        options=RagPipelineOptions(top_k=1, default_namespace=namespace),
    )


def three_chunk_pipeline(embedder: MockEmbedder, store: RecordingVectorStore) -> RagPipeline:
    return RagPipeline(
        embedder=embedder,
        vector_store=store,
        splitter=CharacterTextSplitter(chunk_size=10, chunk_overlap=0),
        options=RagPipelineOptions(embedding_batch_size=2),
    )


class TestRagPipelineOptions:
    def test_defaults(self) -> None:
        options = RagPipelineOptions()
        assert options.default_collection == "default"
        assert options.top_k == 5
        assert options.embedding_batch_size == 100
        assert options.min_score is None

    @pytest.mark.parametrize("kwargs", [{"top_k": 0}, {"embedding_batch_size": 0}])
    def test_invalid_values_raise(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            RagPipelineOptions(**kwargs)


class TestIndexing:
    @pytest.mark.asyncio
    async def test_batches_embeddings_and_upserts_once(
        self, mock_embedder: MockEmbedder, recording_store: RecordingVectorStore
    ) -> None:
        pipeline = three_chunk_pipeline(mock_embedder, recording_store)

        stored = await pipeline.index_document(Document(id="doc", content="a" * 30))

        assert stored == 3
        assert [len(batch) for batch in mock_embedder.batches] == [2, 1]
        assert len(recording_store.upsert_calls) == 1
        assert [r.id for r in recording_store.upsert_calls[0]] == [
            "doc_chunk_0",
            "doc_chunk_1",
            "doc_chunk_2",
        ]

    @pytest.mark.asyncio
    async def test_records_carry_document_id_and_namespace(
        self, mock_embedder: MockEmbedder, recording_store: RecordingVectorStore
    ) -> None:
        pipeline = RagPipeline(
            embedder=mock_embedder,
            vector_store=recording_store,
            splitter=CharacterTextSplitter(chunk_size=100, chunk_overlap=0),
            options=RagPipelineOptions(default_namespace="kb"),
        )

        await pipeline.index_document(Document(id="doc", source="doc.md", content="hello", metadata={"lang": "en"}))

        record = recording_store.upsert_calls[0][0]
        assert record.namespace == "kb"
        assert record.metadata == {
            "lang": "en",
            "source": "doc.md",
            "chunk_index": "0",
            "document_id": "doc",
        }

    @pytest.mark.asyncio
    async def test_empty_document_skips_embedding_and_upsert(
        self, mock_embedder: MockEmbedder, recording_store: RecordingVectorStore
    ) -> None:
        pipeline = three_chunk_pipeline(mock_embedder, recording_store)

        assert await pipeline.index_document(Document(id="empty", content="")) == 0
        assert mock_embedder.batches == []
        assert recording_store.upsert_calls == []
        assert await recording_store.collection_exists("default")

    @pytest.mark.asyncio
    async def test_index_documents_totals(self, local_pipeline: RagPipeline) -> None:
        stats = await local_pipeline.index_documents(FACTS, collection="facts")

        assert stats == {"documents": 3, "chunks": 3}
        assert await local_pipeline.vector_store.count("facts") == 3

    @pytest.mark.asyncio
    async def test_splitter_override(self, local_pipeline: RagPipeline) -> None:
        document = Document(id="md", content="## One\n\nFirst.\n\n## Two\n\nSecond.")

        stored = await local_pipeline.index_document(
            document, splitter=MarkdownTextSplitter(chunk_size=200, chunk_overlap=0)
        )

        assert stored == 2

    @pytest.mark.asyncio
    async def test_reindexing_overwrites_by_id(self, local_pipeline: RagPipeline) -> None:
        await local_pipeline.index_documents(FACTS)
        await local_pipeline.index_documents(FACTS)

        assert await local_pipeline.vector_store.count("default") == 3

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, recording_store: RecordingVectorStore) -> None:
        embedder = MockEmbedder()
        embedder.embed_batch = AsyncMock(side_effect=EmbeddingError("boom", provider="mock"))
        pipeline = three_chunk_pipeline(embedder, recording_store)

        with pytest.raises(EmbeddingError):
            await pipeline.index_document(Document(id="doc", content="a" * 30))
        assert recording_store.upsert_calls == []

    @pytest.mark.asyncio
    async def test_short_embedding_response_raises(self, recording_store: RecordingVectorStore) -> None:
        embedder = MockEmbedder()
        embedder.embed_batch = AsyncMock(return_value=[[0.1] * 8])
        pipeline = three_chunk_pipeline(embedder, recording_store)

        with pytest.raises(EmbeddingError, match="Expected 3 embeddings"):
            await pipeline.index_document(Document(id="doc", content="a" * 30))
        assert recording_store.upsert_calls == []


class TestQuery:
    @pytest.mark.asyncio
    async def test_query_finds_relevant_document(self, local_pipeline: RagPipeline) -> None:
        await local_pipeline.index_documents(FACTS)

        result = await local_pipeline.query("What is the capital city of France?")

        assert result.query == "What is the capital city of France?"
        assert len(result.results) == 3
        assert result.results[0].record.metadata["document_id"] == "paris"
        assert "(Source: paris.txt)" in result.context
        assert result.context.endswith("Question: What is the capital city of France?\n")

    @pytest.mark.asyncio
    async def test_top_k_override(self, local_pipeline: RagPipeline) -> None:
        await local_pipeline.index_documents(FACTS)

        result = await local_pipeline.query("similarity search", top_k=1)

        assert len(result.results) == 1
        assert result.results[0].record.metadata["document_id"] == "faiss"

    @pytest.mark.asyncio
    async def test_min_score_is_merged_into_filter(self, mock_embedder: MockEmbedder) -> None:
        store = InMemoryVectorStore()
        pipeline = RagPipeline(
            embedder=mock_embedder,
            vector_store=store,
            splitter=RecursiveTextSplitter(chunk_size=100, chunk_overlap=0),
            options=RagPipelineOptions(min_score=0.4, top_k=2),
        )

        with patch.object(store, "search", new=AsyncMock(return_value=[])) as mock_search:
            await pipeline.query("q", vector_filter=VectorFilter.by_namespace("kb"))

        collection, _, top_k, vector_filter = mock_search.call_args[0]
        assert collection == "default"
        assert top_k == 2
        assert vector_filter.namespace == "kb"
        assert vector_filter.min_score == 0.4

    @pytest.mark.asyncio
    async def test_default_namespace_scopes_queries(self, memory_store: InMemoryVectorStore) -> None:
        other = namespaced_pipeline(memory_store, "other")
        mine = namespaced_pipeline(memory_store, "mine")
        await other.index_document(FACTS[2])
        await mine.index_document(NOTES)

        result = await mine.query("What is the capital city of France?")

        assert [r.record.namespace for r in result.results] == ["mine"]
        assert result.results[0].record.metadata["document_id"] == "notes"

        diagnosis = await RagDiagnostics(mine).diagnose_query("What is the capital city of France?")
        assert diagnosis.total_chunks == 1
        assert diagnosis.scored_results[0].record.id == result.results[0].record.id

    @pytest.mark.asyncio
    async def test_explicit_namespace_overrides_default(self, memory_store: InMemoryVectorStore) -> None:
        other = namespaced_pipeline(memory_store, "other")
        mine = namespaced_pipeline(memory_store, "mine")
        await other.index_document(FACTS[2])
        await mine.index_document(NOTES)

        result = await mine.query("capital of France", vector_filter=VectorFilter.by_namespace("other"))

        assert result.results[0].record.metadata["document_id"] == "paris"

    @pytest.mark.asyncio
    async def test_query_and_generate(self, local_pipeline: RagPipeline, mock_llm: MockLLM) -> None:
        await local_pipeline.index_documents(FACTS)

        answer = await local_pipeline.query_and_generate("Who created Python?", llm=mock_llm)

        assert answer == "Mock response"
        assert len(mock_llm.prompts) == 1
        assert "Guido van Rossum" in mock_llm.prompts[0]

    @pytest.mark.asyncio
    async def test_query_and_generate_without_llm_raises(self, local_pipeline: RagPipeline) -> None:
        with pytest.raises(ValueError, match="requires an LLM"):
            await local_pipeline.query_and_generate("anything")


class TestDeleteDocument:
    @pytest.mark.asyncio
    async def test_removes_only_that_document(self, memory_store: InMemoryVectorStore) -> None:
        pipeline = RagPipeline(
            embedder=LocalEmbedder(dimension=64),
            vector_store=memory_store,
            splitter=CharacterTextSplitter(chunk_size=20, chunk_overlap=0),
        )
        await pipeline.index_documents(
            [Document(id="a", content="x" * 50), Document(id="b", content="y" * 10)]
        )

        removed = await pipeline.delete_document("a")

        assert removed == 3
        remaining = await memory_store.list_all_records("default")
        assert [r.id for r in remaining] == ["b_chunk_0"]


class TestFromConfig:
    def test_builds_configured_components(self, temp_config: Path) -> None:
        pipeline = load_pipeline(temp_config)

        assert isinstance(pipeline.embedder, LocalEmbedder)
        assert pipeline.embedder.dimension == 64
        assert isinstance(pipeline.splitter, CharacterTextSplitter)
        assert pipeline.splitter.chunk_size == 300
        assert isinstance(pipeline.vector_store, FAISSVectorStore)
        assert pipeline.options.default_collection == "docs"
        assert pipeline.options.top_k == 4
        assert pipeline.options.min_score == 0.1
        assert pipeline.options.embedding_batch_size == 10
        assert pipeline.context_builder.include_scores is True
        assert pipeline.llm is None

    @pytest.mark.asyncio
    async def test_index_persists_under_storage_dir(self, temp_config: Path) -> None:
        pipeline = load_pipeline(temp_config)

        await pipeline.index_documents(FACTS)

        storage = temp_config.parent / "storage" / "faiss_local_hashing"
        assert (storage / "docs.index").exists()
        assert (storage / "docs.json").exists()

        reloaded = load_pipeline(temp_config)
        result = await reloaded.query("Paris is the capital city of France")
        assert result.results[0].record.metadata["document_id"] == "paris"

    def test_env_var_locates_config(self, temp_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAG_CONFIG_PATH", str(temp_config))

        pipeline = load_pipeline()

        assert pipeline.options.default_collection == "docs"
