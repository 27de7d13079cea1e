from .base import BaseTextSplitter


class TokenTextSplitter(BaseTextSplitter):
    """Sliding window over whitespace-separated tokens.

    Chunk sizes are counted in tokens, and chunk content is the window's
    tokens joined with single spaces.
    """

    name = "Token"
    measures_characters = False

    def __init__(self, max_tokens_per_chunk: int = 512, token_overlap: int = 50):
        super().__init__(max_tokens_per_chunk, token_overlap)

    @property
    def max_tokens_per_chunk(self) -> int:
        return self.chunk_size

    @property
    def token_overlap(self) -> int:
        return self.chunk_overlap

    def split_text(self, text: str) -> list[str]:
        tokens = text.split()
        if not tokens:
            return []

        advance = max(1, self.chunk_size - self.chunk_overlap)
        chunks = []
        position = 0
        while position < len(tokens):
            chunks.append(" ".join(tokens[position : position + self.chunk_size]))
            if position + self.chunk_size >= len(tokens):
                break
            position += advance
        return chunks
