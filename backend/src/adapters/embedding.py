import asyncio
import logging
import os
from typing import Any, Optional

from openai import AsyncOpenAI

from adapters.base import BaseEmbedder
from adapters.utils import create_session_with_pooling
from errors import EmbeddingError

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

DEFAULT_BATCH_SIZE = 500
DEFAULT_OLLAMA_DIMENSION = 768


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider.

    All texts of a batch go out in a single request. Vectors are returned in
    the order of the response's ``data`` array, which the API documents as
    request order; the per-item ``index`` field is not consulted.
    """

    def __init__(self, model: str = "text-embedding-3-small", **kwargs: Any):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None)
        super().__init__(model, **kwargs)

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._dimension: int = kwargs.get("dimensions") or EMBEDDING_DIMENSIONS.get(model, 1536)

    @property
    def dimension(self) -> int:
        return self._dimension

    def _create_embedding_params(self, texts: list[str]) -> dict[str, Any]:
        """Build parameters for embedding API call."""
        return {"model": self.model, "input": texts, "dimensions": self._dimension}

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        response = await self.client.embeddings.create(**self._create_embedding_params(texts))
        vectors = [list(item.embedding) for item in response.data]
        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, received {len(vectors)}",
                provider="openai",
            )
        return vectors


class OllamaEmbedder(BaseEmbedder):
    """Ollama local embedding provider with batch processing and connection pooling.

    Requests go through a pooled ``requests`` session on a worker thread so
    the event loop is not blocked.
    """

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = 120,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self._dimension: int = kwargs.get("dimension", DEFAULT_OLLAMA_DIMENSION)
        self._batch_size = batch_size
        self._timeout = timeout
        self.session = create_session_with_pooling()

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Batch embedding using /api/embed, chunked for large inputs."""
        if not texts:
            return []

        results: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            results.extend(await asyncio.to_thread(self._embed_batch_single, batch))
        return results

    def _embed_batch_single(self, texts: list[str]) -> list[list[float]]:
        """Send a single batch request to Ollama's /api/embed endpoint."""
        response = self.session.post(
            f"{self.base_url}/api/embed",
            json={"model": self.model, "input": texts},
            timeout=self._timeout,
        )
        response.raise_for_status()
        data = response.json()

        embeddings: Optional[list[list[float]]] = data.get("embeddings")
        if embeddings is None and "embedding" in data:
            embeddings = [data["embedding"]]
        if not embeddings or len(embeddings) != len(texts):
            received = len(embeddings) if embeddings else 0
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings from Ollama, received {received}",
                provider="ollama",
            )

        actual = len(embeddings[0])
        if actual != self._dimension:
            logger.warning(
                f"Ollama model {self.model} returned {actual}-dim vectors, "
                f"expected {self._dimension}; adopting {actual}"
            )
            self._dimension = actual
        return embeddings
