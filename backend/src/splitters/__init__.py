from typing import Any

from .base import BaseTextSplitter
from .character import CharacterTextSplitter
from .markdown import MarkdownTextSplitter
from .recursive import RecursiveTextSplitter
from .tokens import TokenTextSplitter

_SPLITTERS: dict[str, type[BaseTextSplitter]] = {
    "character": CharacterTextSplitter,
    "recursive": RecursiveTextSplitter,
    "markdown": MarkdownTextSplitter,
    "token": TokenTextSplitter,
}


def create_splitter(kind: str, **kwargs: Any) -> BaseTextSplitter:
    """Create a text splitter by name.

    Args:
        kind: One of "character", "recursive", "markdown" or "token".
        **kwargs: Splitter-specific parameters.

    Returns:
        BaseTextSplitter instance

    Raises:
        ValueError: If the splitter kind is unknown
    """
    if kind not in _SPLITTERS:
        raise ValueError(f"Unknown splitter: {kind}. Available: {list(_SPLITTERS)}")
    return _SPLITTERS[kind](**kwargs)


__all__ = [
    "BaseTextSplitter",
    "CharacterTextSplitter",
    "MarkdownTextSplitter",
    "RecursiveTextSplitter",
    "TokenTextSplitter",
    "create_splitter",
]
