from pathlib import Path
from typing import Any, Optional

from .base import BaseVectorStore, IntrospectableVectorStore
from .faiss import FAISSVectorStore
from .memory import InMemoryVectorStore


def create_vector_store(
    provider: str,
    dimension: int,
    directory: Optional[Path] = None,
    **kwargs: Any,
) -> BaseVectorStore:
    """Create a vector store instance based on provider.

    Args:
        provider: "memory" or "faiss"
        dimension: Embedding dimension
        directory: Persistence directory (FAISS only, optional)
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseVectorStore instance
    """
    if provider == "memory":
        return InMemoryVectorStore(**kwargs)
    if provider == "faiss":
        return FAISSVectorStore(dimension=dimension, directory=directory, **kwargs)
    raise ValueError(f"Unknown vector store provider: {provider}")


__all__ = [
    "BaseVectorStore",
    "FAISSVectorStore",
    "InMemoryVectorStore",
    "IntrospectableVectorStore",
    "create_vector_store",
]
