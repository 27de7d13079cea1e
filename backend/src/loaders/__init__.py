from typing import Any

from .base import BaseDocumentLoader
from .llama import LlamaIndexLoader
from .text import DEFAULT_TEXT_EXTENSIONS, DirectoryLoader, TextFileLoader


def create_loader(provider: str, **kwargs: Any) -> BaseDocumentLoader:
    """Create a document loader based on provider.

    Args:
        provider: "text", "directory" or "llama"
        **kwargs: Additional provider-specific parameters

    Returns:
        BaseDocumentLoader instance
    """
    if provider == "text":
        return TextFileLoader(**kwargs)
    if provider == "directory":
        return DirectoryLoader(**kwargs)
    if provider == "llama":
        return LlamaIndexLoader(**kwargs)
    raise ValueError(f"Unknown loader provider: {provider}")


__all__ = [
    "BaseDocumentLoader",
    "DEFAULT_TEXT_EXTENSIONS",
    "DirectoryLoader",
    "LlamaIndexLoader",
    "TextFileLoader",
    "create_loader",
]
