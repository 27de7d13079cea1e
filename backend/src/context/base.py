from abc import ABC, abstractmethod

from models.vector import VectorSearchResult


class BaseContextBuilder(ABC):
    """Abstract base class for turning search results into a prompt."""

    @abstractmethod
    def build_context(self, query: str, results: list[VectorSearchResult]) -> str:
        pass
