from abc import ABC, abstractmethod
from typing import Any


class BaseEmbedder(ABC):
    """Abstract base class for embedding providers.

    ``embed_batch`` must return one vector per input text, in input order.
    """

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        pass

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass


class BaseLLM(ABC):
    """Abstract base class for completion providers."""

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    async def generate(self, prompt: str, **kwargs: Any) -> str:
        pass
