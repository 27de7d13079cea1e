from .base import BaseTextSplitter

DEFAULT_SEPARATOR = "\n\n"


class CharacterTextSplitter(BaseTextSplitter):
    """Fixed-size sliding window that snaps its right edge to a separator.

    Each window is ``chunk_size`` characters. When the window ends inside the
    text, its edge moves back to just after the last separator found in the
    window, so separators are never cut in half. Consecutive windows overlap
    by ``chunk_overlap`` characters.
    """

    name = "Character"

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separator: str = DEFAULT_SEPARATOR,
    ):
        super().__init__(chunk_size, chunk_overlap)
        self.separator = separator

    def split_text(self, text: str) -> list[str]:
        if not text:
            return []

        chunks = []
        length = len(text)
        position = 0

        while position < length:
            end = min(position + self.chunk_size, length)

            if end < length and self.separator:
                last = text.rfind(self.separator, position, end)
                if last > position:
                    end = last + len(self.separator)

            content = text[position:end].strip()
            if content:
                chunks.append(content)

            if end >= length:
                break
            position += max(1, (end - position) - self.chunk_overlap)

        return chunks
