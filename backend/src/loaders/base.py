from abc import ABC, abstractmethod
from pathlib import Path

from models.chunk import Document


class BaseDocumentLoader(ABC):
    """Abstract base class for document loaders."""

    @abstractmethod
    def load(self, source: Path | str) -> list[Document]:
        """Load every document found at ``source``."""
        pass
