"""Data models for stored vectors, search hits and query output."""

from typing import Optional

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """A persisted, searchable chunk and its embedding."""

    id: str
    vector: list[float]
    content: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    namespace: Optional[str] = None


class VectorSearchResult(BaseModel):
    """One retrieval hit. Higher score means more relevant."""

    record: VectorRecord
    score: float


class VectorFilter(BaseModel):
    """Query-time constraint on records.

    Attributes:
        namespace: Only records in this namespace match.
        metadata_match: Every key/value pair must be present on the record.
        min_score: Results scoring below this value are discarded.
    """

    namespace: Optional[str] = None
    metadata_match: dict[str, str] = Field(default_factory=dict)
    min_score: Optional[float] = None

    @classmethod
    def by_namespace(cls, namespace: str) -> "VectorFilter":
        return cls(namespace=namespace)

    @classmethod
    def by_metadata(cls, key: str, value: str) -> "VectorFilter":
        return cls(metadata_match={key: value})

    def matches(self, record: VectorRecord) -> bool:
        """Check namespace and metadata constraints. Score is not considered."""
        if self.namespace is not None and record.namespace != self.namespace:
            return False
        for key, value in self.metadata_match.items():
            if record.metadata.get(key) != value:
                return False
        return True


class QueryResult(BaseModel):
    """Output of one retrieval call."""

    query: str
    context: str
    results: list[VectorSearchResult] = Field(default_factory=list)
