import logging
from pathlib import Path

from llama_index.core import SimpleDirectoryReader

from models.chunk import Document
from .base import BaseDocumentLoader

logger = logging.getLogger(__name__)


class LlamaIndexLoader(BaseDocumentLoader):
    """Document loader for any format llama-index can read (PDF, DOCX, ...).

    ``source`` may be a directory or a single file. Multi-page formats yield
    one document per page, as ``SimpleDirectoryReader`` returns them.
    """

    def __init__(self, recursive: bool = True):
        self.recursive = recursive

    def load(self, source: Path | str) -> list[Document]:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Path not found: {path}")

        if path.is_dir():
            reader = SimpleDirectoryReader(str(path), recursive=self.recursive)
        else:
            reader = SimpleDirectoryReader(input_files=[str(path)])

        documents = []
        for node in reader.load_data():
            metadata = {k: str(v) for k, v in (node.metadata or {}).items() if v is not None}
            documents.append(
                Document(
                    id=node.doc_id,
                    content=node.text,
                    source=metadata.get("file_path", metadata.get("file_name", str(path))),
                    metadata=metadata,
                )
            )

        logger.info(f"Loaded {len(documents)} documents from {path}")
        return documents
