from abc import ABC, abstractmethod
from typing import Iterable

from models.chunk import Chunk, Document


class BaseTextSplitter(ABC):
    """Abstract base class for text splitters.

    Subclasses implement ``split_text``; building chunk ids and metadata is
    shared so every strategy produces identically shaped chunks.
    """

    name: str = "Base"
    # False when chunk_size counts something other than characters.
    measures_characters: bool = True

    def __init__(self, chunk_size: int, chunk_overlap: int):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be non-negative, got {chunk_overlap}")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @abstractmethod
    def split_text(self, text: str) -> list[str]:
        """Split raw text into trimmed, non-empty chunk contents."""
        pass

    def split(self, document: Document) -> list[Chunk]:
        """Split a document into chunks with copied metadata."""
        if not document.content:
            return []
        return self._build_chunks(document, self.split_text(document.content))

    def split_documents(self, documents: list[Document]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self.split(document))
        return chunks

    def describe(self) -> str:
        """Short label used in reports, e.g. ``Recursive(500, overlap=100)``."""
        return f"{self.name}({self.chunk_size}, overlap={self.chunk_overlap})"

    def _build_chunks(self, document: Document, contents: Iterable[str]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for content in contents:
            index = len(chunks)
            metadata = dict(document.metadata)
            metadata["source"] = document.source
            metadata["chunk_index"] = str(index)
            chunks.append(
                Chunk(
                    id=f"{document.id}_chunk_{index}",
                    document_id=document.id,
                    content=content,
                    index=index,
                    metadata=metadata,
                )
            )
        return chunks
