"""Helpers shared by the separator-based splitters."""

import logging

logger = logging.getLogger(__name__)


def split_by_length(text: str, chunk_size: int, chunk_overlap: int) -> list[str]:
    """Hard-split text into fixed windows of ``chunk_size`` characters.

    Consecutive windows share ``chunk_overlap`` characters. The last window
    ends at the end of the text.
    """
    step = max(1, chunk_size - chunk_overlap)
    pieces = []
    position = 0
    while position < len(text):
        pieces.append(text[position : position + chunk_size])
        if position + chunk_size >= len(text):
            break
        position += step
    return pieces


def merge_splits(
    pieces: list[str], joiner: str, chunk_size: int, chunk_overlap: int
) -> list[str]:
    """Greedily pack pieces into chunks no longer than ``chunk_size``.

    After a chunk is emitted the next one is seeded with the trailing pieces
    of the previous chunk whose joined length is at most ``chunk_overlap``.
    Pieces are never split, so a single piece longer than ``chunk_size`` is
    emitted on its own.
    """
    joiner_len = len(joiner)
    chunks: list[str] = []
    current: list[str] = []
    total = 0

    for piece in pieces:
        piece_len = len(piece)
        added = piece_len + (joiner_len if current else 0)

        if current and total + added > chunk_size:
            chunks.append(joiner.join(current))
            if total > chunk_size:
                logger.debug(f"Emitted oversized chunk of {total} chars (limit {chunk_size})")

            # Drop leading pieces until the remainder fits the overlap and leaves room.
            while current and (
                total > chunk_overlap
                or total + piece_len + (joiner_len if current else 0) > chunk_size
            ):
                total -= len(current[0]) + (joiner_len if len(current) > 1 else 0)
                current.pop(0)

        current.append(piece)
        total += piece_len + (joiner_len if len(current) > 1 else 0)

    if current:
        chunks.append(joiner.join(current))
    return chunks
