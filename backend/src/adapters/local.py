"""Feature-hashing embedder that needs no model or network access."""

from typing import Any

import numpy as np

from adapters.base import BaseEmbedder

DEFAULT_LOCAL_DIMENSION = 1024
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
UNIGRAM_WEIGHT = 1.0
BIGRAM_WEIGHT = 0.5


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash over the characters of ``text``."""
    value = FNV_OFFSET_BASIS
    for char in text:
        value ^= ord(char)
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value


def tokenize(text: str) -> list[str]:
    """Lower-case, replace non-alphanumerics with spaces and split."""
    cleaned = "".join(c if c.isalnum() else " " for c in text.lower())
    return cleaned.split()


class LocalEmbedder(BaseEmbedder):
    """Hashing-trick embeddings from unigrams and bigrams.

    Each token is hashed into one of ``dimension`` buckets, with the sign
    taken from the hash's top bit. Bigrams contribute half the weight of
    unigrams. Output vectors are L2-normalized.
    """

    def __init__(
        self,
        model: str = "local-hashing",
        dimension: int = DEFAULT_LOCAL_DIMENSION,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def _accumulate(self, vector: np.ndarray, feature: str, weight: float) -> None:
        hashed = fnv1a_32(feature)
        sign = -1.0 if hashed & 0x80000000 else 1.0
        vector[hashed % self._dimension] += sign * weight

    def _vectorize(self, text: str) -> list[float]:
        vector = np.zeros(self._dimension, dtype=np.float64)
        tokens = tokenize(text or "")

        for token in tokens:
            self._accumulate(vector, token, UNIGRAM_WEIGHT)
        for first, second in zip(tokens, tokens[1:]):
            self._accumulate(vector, f"{first} {second}", BIGRAM_WEIGHT)

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector.tolist()

    async def embed(self, text: str) -> list[float]:
        return self._vectorize(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self._vectorize(text) for text in texts]
