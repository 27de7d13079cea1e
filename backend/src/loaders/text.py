import logging
from pathlib import Path
from typing import Iterable, Optional

from models.chunk import Document
from .base import BaseDocumentLoader

logger = logging.getLogger(__name__)

DEFAULT_TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".markdown", ".csv", ".json", ".xml", ".html", ".htm",
        ".log", ".yaml", ".yml", ".ini", ".cfg", ".toml", ".rst", ".py", ".cs",
        ".js", ".ts", ".java", ".go", ".rs", ".sql",
    }
)


class TextFileLoader(BaseDocumentLoader):
    """Loads one plain-text file as one document."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def load(self, source: Path | str) -> list[Document]:
        path = Path(source)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        content = path.read_text(encoding=self.encoding)
        return [
            Document(
                id=path.stem,
                content=content,
                source=str(path),
                metadata={
                    "file_name": path.name,
                    "extension": path.suffix.lower(),
                },
            )
        ]


class DirectoryLoader(BaseDocumentLoader):
    """Loads every text file under a directory, recursively.

    Document ids are paths relative to the directory, so two files with the
    same name in different folders stay distinct.
    """

    def __init__(
        self,
        extensions: Optional[Iterable[str]] = None,
        recursive: bool = True,
        encoding: str = "utf-8",
    ):
        self.extensions = (
            frozenset(e.lower() for e in extensions) if extensions is not None else DEFAULT_TEXT_EXTENSIONS
        )
        self.recursive = recursive
        self._file_loader = TextFileLoader(encoding=encoding)

    def load(self, source: Path | str) -> list[Document]:
        directory = Path(source)
        if not directory.is_dir():
            raise FileNotFoundError(f"Directory not found: {directory}")

        pattern = "**/*" if self.recursive else "*"
        documents = []
        for path in sorted(directory.glob(pattern)):
            if not path.is_file() or path.suffix.lower() not in self.extensions:
                continue
            for document in self._file_loader.load(path):
                document.id = path.relative_to(directory).as_posix()
                documents.append(document)

        logger.info(f"Loaded {len(documents)} documents from {directory}")
        return documents
