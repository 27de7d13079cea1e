from .base import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_COLLECTION,
    DEFAULT_TOP_K,
    RagPipelineOptions,
    create_context_builder_from_config,
    create_embedder_from_config,
    create_llm_from_config,
    create_splitter_from_config,
    create_vector_store_from_config,
)
from .rag import DOCUMENT_ID_KEY, RagPipeline, load_pipeline
from .store import LazyRagStore, RagEnabledService, RagStore

__all__ = [
    "RagPipeline",
    "RagPipelineOptions",
    "RagStore",
    "LazyRagStore",
    "RagEnabledService",
    "load_pipeline",
    "create_context_builder_from_config",
    "create_embedder_from_config",
    "create_llm_from_config",
    "create_splitter_from_config",
    "create_vector_store_from_config",
    "DOCUMENT_ID_KEY",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_COLLECTION",
    "DEFAULT_TOP_K",
]
