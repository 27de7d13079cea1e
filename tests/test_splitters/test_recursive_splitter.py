from diagnostics import compute_overlap_length
from models.chunk import Document
from splitters import RecursiveTextSplitter


def numbered_words(count: int) -> str:
    return " ".join(f"word{i}" for i in range(count))


class TestRecursiveTextSplitter:
    def test_short_text_is_single_chunk(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=10)
        assert splitter.split_text("  Just one line.  ") == ["Just one line."]

    def test_merges_small_paragraphs(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=120, chunk_overlap=0)
        text = "\n\n".join(["a" * 50, "b" * 50, "c" * 50])

        assert splitter.split_text(text) == ["a" * 50 + "\n\n" + "b" * 50, "c" * 50]

    def test_without_keep_separator_joins_with_separator(self) -> None:
        splitter = RecursiveTextSplitter(
            chunk_size=9, chunk_overlap=0, separators=[" "], keep_separator=False
        )
        assert splitter.split_text("one two three four") == ["one two", "three", "four"]

    def test_hard_split_when_no_separator_occurs(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=10, separators=[" "])
        chunks = splitter.split_text("x" * 250)

        assert [len(c) for c in chunks] == [100, 100, 70]

    def test_chunks_are_bounded_and_overlap_is_limited(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=20)
        chunks = splitter.split_text(numbered_words(400))

        assert len(chunks) > 1
        assert all(len(c) <= 100 for c in chunks)
        for previous, current in zip(chunks, chunks[1:]):
            assert compute_overlap_length(previous, current) <= 20

    def test_every_word_is_covered(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=20)
        chunks = splitter.split_text(numbered_words(200))

        covered = set(" ".join(chunks).split())
        assert covered == {f"word{i}" for i in range(200)}

    def test_overlap_is_seeded_from_previous_chunk(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=100, chunk_overlap=20)
        chunks = splitter.split_text(numbered_words(100))

        first_tail = chunks[0].split()[-1]
        assert chunks[1].split()[0] != chunks[0].split()[0]
        assert first_tail in chunks[1]

    def test_large_piece_keeps_document_order(self) -> None:
        splitter = RecursiveTextSplitter(chunk_size=50, chunk_overlap=0)
        text = "short para\n\n" + "x y " * 60 + "\n\nclosing para"
        chunks = splitter.split_text(text)

        assert chunks[0] == "short para"
        assert chunks[-1].endswith("closing para")
        assert all(len(c) <= 50 for c in chunks)

    def test_split_document_builds_chunks(self) -> None:
        document = Document(id="guide", content=numbered_words(80), source="guide.txt")
        chunks = RecursiveTextSplitter(chunk_size=100, chunk_overlap=0).split(document)

        assert chunks[0].id == "guide_chunk_0"
        assert chunks[-1].index == len(chunks) - 1
        assert all(c.metadata["source"] == "guide.txt" for c in chunks)

    def test_describe(self) -> None:
        assert RecursiveTextSplitter(500, 100).describe() == "Recursive(500, overlap=100)"
