"""Data models for documents and the chunks split from them."""

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A whole retrievable unit before splitting.

    Attributes:
        id: Caller-assigned identifier, generated when omitted.
        content: Full text of the document. May be empty.
        source: Origin label (file path, URL, ...).
        metadata: Free-form string metadata supplied by the loader.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    content: Optional[str] = ""
    source: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)


class Chunk(BaseModel):
    """A splitter-produced fragment of one document.

    Attributes:
        id: ``{document_id}_chunk_{index}``.
        document_id: Id of the parent document.
        content: The chunk text.
        index: 0-based position within the parent document.
        metadata: Copy of the document metadata plus ``source`` and ``chunk_index``.
    """

    id: str
    document_id: str
    content: str
    index: int
    metadata: dict[str, str] = Field(default_factory=dict)
