"""Data models for the RAG toolkit."""

from .chunk import Chunk, Document
from .vector import QueryResult, VectorFilter, VectorRecord, VectorSearchResult

__all__ = [
    "Chunk",
    "Document",
    "QueryResult",
    "VectorFilter",
    "VectorRecord",
    "VectorSearchResult",
]
