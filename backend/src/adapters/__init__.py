from typing import Any, Generic, Type, TypeVar

from adapters.base import BaseEmbedder, BaseLLM

T = TypeVar("T")


class ProviderRegistry(Generic[T]):
    """Name -> class lookup for one kind of provider."""

    def __init__(self, kind: str):
        self.kind = kind
        self._classes: dict[str, Type[T]] = {}

    def register(self, provider: str, cls: Type[T]) -> None:
        self._classes[provider] = cls

    def create(self, provider: str, **kwargs: Any) -> T:
        """Instantiate a registered provider.

        Raises:
            ValueError: If provider is not registered
        """
        cls = self._classes.get(provider)
        if cls is None:
            raise ValueError(
                f"Unknown {self.kind} provider: {provider}. Available: {self.names()}"
            )
        return cls(**kwargs)

    def names(self) -> list[str]:
        return list(self._classes)


EMBEDDERS: ProviderRegistry[BaseEmbedder] = ProviderRegistry("embedder")
LLMS: ProviderRegistry[BaseLLM] = ProviderRegistry("LLM")


def register_embedder(provider: str, cls: Type[BaseEmbedder]) -> None:
    """Register an embedder provider.

    Args:
        provider: Provider name (e.g., "local", "openai", "ollama")
        cls: Embedder class to register
    """
    EMBEDDERS.register(provider, cls)


def register_llm(provider: str, cls: Type[BaseLLM]) -> None:
    LLMS.register(provider, cls)


def create_embedder(provider: str, **kwargs: Any) -> BaseEmbedder:
    """Create an embedder, e.g. ``create_embedder("local", dimension=256)``."""
    return EMBEDDERS.create(provider, **kwargs)


def create_llm(provider: str, **kwargs: Any) -> BaseLLM:
    return LLMS.create(provider, **kwargs)


def list_embedder_providers() -> list[str]:
    return EMBEDDERS.names()


def list_llm_providers() -> list[str]:
    return LLMS.names()


from adapters.embedding import OllamaEmbedder, OpenAIEmbedder
from adapters.llm import OllamaLLM, OpenAILLM
from adapters.local import LocalEmbedder

register_embedder("local", LocalEmbedder)
register_embedder("openai", OpenAIEmbedder)
register_embedder("ollama", OllamaEmbedder)
register_llm("openai", OpenAILLM)
register_llm("ollama", OllamaLLM)

__all__ = [
    "BaseEmbedder",
    "BaseLLM",
    "LocalEmbedder",
    "OllamaEmbedder",
    "OllamaLLM",
    "OpenAIEmbedder",
    "OpenAILLM",
    "ProviderRegistry",
    "create_embedder",
    "create_llm",
    "list_embedder_providers",
    "list_llm_providers",
    "register_embedder",
    "register_llm",
]
