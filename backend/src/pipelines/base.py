from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from adapters import BaseEmbedder, BaseLLM, create_embedder, create_llm
from config import get_config_value, get_storage_dir
from context import BaseContextBuilder, DefaultContextBuilder, TemplateContextBuilder
from splitters import BaseTextSplitter, create_splitter
from stores import BaseVectorStore, create_vector_store

DEFAULT_COLLECTION = "default"
DEFAULT_BATCH_SIZE = 100
DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_TOP_K = 5


@dataclass
class RagPipelineOptions:
    """Tunable pipeline behaviour.

    Attributes:
        default_collection: Collection used when a call does not name one.
        default_namespace: Namespace stamped on indexed records.
        top_k: Number of results returned by a query.
        min_score: Score floor merged into every query filter.
        embedding_batch_size: Chunk texts sent per embedding call.
    """

    default_collection: str = DEFAULT_COLLECTION
    default_namespace: Optional[str] = None
    top_k: int = DEFAULT_TOP_K
    min_score: Optional[float] = None
    embedding_batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.top_k <= 0:
            raise ValueError(f"top_k must be positive, got {self.top_k}")
        if self.embedding_batch_size <= 0:
            raise ValueError(
                f"embedding_batch_size must be positive, got {self.embedding_batch_size}"
            )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RagPipelineOptions":
        return cls(
            default_collection=get_config_value(config, "pipeline.collection", DEFAULT_COLLECTION),
            default_namespace=get_config_value(config, "pipeline.namespace"),
            top_k=get_config_value(config, "retrieval.top_k", DEFAULT_TOP_K),
            min_score=get_config_value(config, "retrieval.min_score"),
            embedding_batch_size=get_config_value(config, "pipeline.batch_size", DEFAULT_BATCH_SIZE),
        )


def _create_adapter_from_config(
    config: dict[str, Any],
    section: str,
    create_fn: Callable[..., Any],
    defaults: dict[str, str],
) -> Any:
    """Create an adapter (embedder or LLM) from configuration."""
    section_config = config.get(section, {})
    provider = section_config.get("provider", defaults["provider"])
    model = section_config.get("model", defaults["model"])

    extra_kwargs = {
        k: v for k, v in section_config.items() if k not in ("provider", "model")
    }

    return create_fn(provider, model=model, **extra_kwargs)


def create_embedder_from_config(config: dict[str, Any]) -> BaseEmbedder:
    """Create an embedder instance from configuration."""
    defaults = {"provider": "local", "model": "local-hashing"}
    return _create_adapter_from_config(config, "embedding", create_embedder, defaults)


def create_llm_from_config(config: dict[str, Any]) -> Optional[BaseLLM]:
    """Create an LLM instance from configuration, or None without an [llm] section."""
    if "llm" not in config:
        return None
    defaults = {"provider": "openai", "model": "gpt-4o-mini"}
    return _create_adapter_from_config(config, "llm", create_llm, defaults)


def create_splitter_from_config(config: dict[str, Any]) -> BaseTextSplitter:
    splitter_config = dict(config.get("splitter", {}))
    kind = splitter_config.pop("type", "recursive")
    if kind != "token":
        splitter_config.setdefault("chunk_size", DEFAULT_CHUNK_SIZE)
        splitter_config.setdefault("chunk_overlap", DEFAULT_CHUNK_OVERLAP)
    return create_splitter(kind, **splitter_config)


def create_vector_store_from_config(
    config: dict[str, Any], config_path: Path, embedder: BaseEmbedder
) -> BaseVectorStore:
    """Create the configured store. FAISS data lives in a per-embedder directory."""
    provider = get_config_value(config, "storage.provider", "memory")
    directory = None
    if provider == "faiss":
        embedding_id = embedder.model.replace("/", "_").replace("-", "_")
        directory = get_storage_dir(config, config_path) / f"faiss_{embedding_id}"
    return create_vector_store(provider, dimension=embedder.dimension, directory=directory)


def create_context_builder_from_config(config: dict[str, Any]) -> BaseContextBuilder:
    retrieval = config.get("retrieval", {})
    template = retrieval.get("context_template")
    if template:
        return TemplateContextBuilder(template)
    return DefaultContextBuilder(
        include_source=retrieval.get("include_source", True),
        include_scores=retrieval.get("include_scores", False),
        max_context_tokens=retrieval.get("max_context_tokens"),
    )
