from typing import Optional

from .base import BaseTextSplitter
from .utils import merge_splits, split_by_length

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class RecursiveTextSplitter(BaseTextSplitter):
    """Split on the coarsest separator that occurs, recursing into oversized pieces.

    Pieces that already fit are merged back together up to ``chunk_size``
    with a boundary-aligned overlap. Pieces that do not fit are split again
    with the separators that follow in the cascade, and hard-split by length
    once the cascade is exhausted. The empty separator in the default cascade
    stands for character-level splitting.
    """

    name = "Recursive"

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: Optional[list[str]] = None,
        keep_separator: bool = True,
    ):
        super().__init__(chunk_size, chunk_overlap)
        self.separators = list(separators) if separators is not None else list(DEFAULT_SEPARATORS)
        self.keep_separator = keep_separator

    def split_text(self, text: str) -> list[str]:
        if not text:
            return []
        pieces = self._split_recursive(text, 0)
        return [p.strip() for p in pieces if p.strip()]

    def _split_recursive(self, text: str, separator_index: int) -> list[str]:
        if len(text) <= self.chunk_size:
            return [text]

        found = self._find_separator(text, separator_index)
        if found is None:
            return split_by_length(text, self.chunk_size, self.chunk_overlap)

        found_index, separator = found
        if separator == "":
            return split_by_length(text, self.chunk_size, self.chunk_overlap)

        pieces = text.split(separator)
        if self.keep_separator:
            pieces = pieces[:1] + [separator + p for p in pieces[1:]]
            joiner = ""
        else:
            joiner = separator
        pieces = [p for p in pieces if p]

        results: list[str] = []
        pending: list[str] = []
        next_index = found_index + 1

        for piece in pieces:
            if len(piece) <= self.chunk_size:
                pending.append(piece)
                continue

            if pending:
                results.extend(merge_splits(pending, joiner, self.chunk_size, self.chunk_overlap))
                pending = []
            if next_index < len(self.separators):
                results.extend(self._split_recursive(piece, next_index))
            else:
                results.extend(split_by_length(piece, self.chunk_size, self.chunk_overlap))

        if pending:
            results.extend(merge_splits(pending, joiner, self.chunk_size, self.chunk_overlap))
        return results

    def _find_separator(self, text: str, start: int) -> Optional[tuple[int, str]]:
        """Return the first separator from ``start`` on that occurs in ``text``."""
        for index in range(start, len(self.separators)):
            separator = self.separators[index]
            if separator == "" or separator in text:
                return index, separator
        return None
