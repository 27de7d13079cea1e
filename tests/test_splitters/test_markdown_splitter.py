import pytest

from models.chunk import Document
from splitters import MarkdownTextSplitter

CODE_BLOCK = "```python\n" + "\n".join(f"print({i})" for i in range(30)) + "\n```"
TABLE = "\n".join(["| name | value |", "|------|-------|"] + [f"| row {i} | value {i} |" for i in range(20)])


class TestMarkdownTextSplitter:
    def test_one_chunk_per_small_section(self) -> None:
        content = "## Alpha\n\nAlpha body text.\n\n## Beta\n\nBeta body text."
        chunks = MarkdownTextSplitter(chunk_size=500).split(Document(id="md", content=content))

        assert len(chunks) == 2
        assert chunks[0].content.startswith("## Alpha")
        assert chunks[1].content.startswith("## Beta")
        assert chunks[0].content == "## Alpha\nAlpha body text."

    def test_breadcrumb_includes_parent_headings(self) -> None:
        content = "# Guide\n\nIntro.\n\n## Install\n\nRun it.\n\n### Details\n\nMore."
        chunks = MarkdownTextSplitter(chunk_size=500).split_text(content)

        assert chunks == [
            "# Guide\nIntro.",
            "# Guide\n## Install\nRun it.\n\n### Details\n\nMore.",
        ]

    def test_without_breadcrumb_uses_own_heading(self) -> None:
        content = "# Guide\n\nIntro.\n\n## Install\n\nRun it."
        splitter = MarkdownTextSplitter(chunk_size=500, include_heading_breadcrumb=False)

        assert splitter.split_text(content) == ["# Guide\nIntro.", "## Install\nRun it."]

    def test_deeper_split_level_starts_more_sections(self) -> None:
        content = "## Install\n\nRun it.\n\n### Details\n\nMore."
        splitter = MarkdownTextSplitter(chunk_size=500, min_split_heading_level=3)

        assert splitter.split_text(content) == [
            "## Install\nRun it.",
            "## Install\n### Details\nMore.",
        ]

    def test_hash_without_space_is_not_a_heading(self) -> None:
        content = "#hashtag line\n\n## Real\n\nBody"
        assert MarkdownTextSplitter(chunk_size=500).split_text(content) == [
            "#hashtag line",
            "## Real\nBody",
        ]

    def test_code_fence_is_never_split(self) -> None:
        content = f"## Code\n\nIntro line.\n\n{CODE_BLOCK}\n\nOutro line."
        chunks = MarkdownTextSplitter(chunk_size=150, chunk_overlap=0).split_text(content)

        assert any(CODE_BLOCK in c for c in chunks)
        assert all(c.startswith("## Code\n") for c in chunks)

    def test_heading_inside_code_fence_is_content(self) -> None:
        content = "## Shell\n\n```bash\n# not a heading\nls\n```"
        assert MarkdownTextSplitter(chunk_size=500).split_text(content) == [
            "## Shell\n```bash\n# not a heading\nls\n```"
        ]

    def test_table_is_never_split(self) -> None:
        content = f"## Data\n\n{TABLE}\n\nAfter table."
        chunks = MarkdownTextSplitter(chunk_size=120, chunk_overlap=0).split_text(content)

        assert any(TABLE in c for c in chunks)
        assert chunks[-1] == "## Data\nAfter table."

    def test_oversized_text_falls_back_to_smaller_pieces(self) -> None:
        content = "## Long\n\n" + "lorem ipsum " * 60
        splitter = MarkdownTextSplitter(chunk_size=200, chunk_overlap=0)
        chunks = splitter.split_text(content)

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.startswith("## Long\n")
            assert len(chunk) <= 200

    @pytest.mark.parametrize("min_section_budget", [100, 120])
    def test_budget_floor_applies_under_long_breadcrumb(self, min_section_budget: int) -> None:
        heading = "## " + "H" * 180
        content = f"{heading}\n\n" + "word " * 40
        splitter = MarkdownTextSplitter(
            chunk_size=200, chunk_overlap=0, min_section_budget=min_section_budget
        )
        chunks = splitter.split_text(content)

        bodies = [c[len(heading) + 1 :] for c in chunks]
        assert all(c.startswith(heading + "\n") for c in chunks)
        assert all(len(b) <= min_section_budget for b in bodies)
        assert max(len(b) for b in bodies) > min_section_budget - 5

    def test_preamble_before_first_heading(self) -> None:
        content = "Preface text.\n\n## Section\n\nBody."
        assert MarkdownTextSplitter(chunk_size=500).split_text(content) == [
            "Preface text.",
            "## Section\nBody.",
        ]

    def test_heading_only_sections_keep_their_breadcrumb(self) -> None:
        content = "# Title\n\n## Empty\n\n## Full\n\nText."
        assert MarkdownTextSplitter(chunk_size=500).split_text(content) == [
            "# Title",
            "# Title\n## Empty",
            "# Title\n## Full\nText.",
        ]

    def test_heading_only_section_without_breadcrumb(self) -> None:
        splitter = MarkdownTextSplitter(chunk_size=500, include_heading_breadcrumb=False)
        assert splitter.split_text("## Lonely\n\n## Next\n\nBody.") == ["## Lonely", "## Next\nBody."]

    def test_blank_preamble_is_skipped(self) -> None:
        assert MarkdownTextSplitter(chunk_size=500).split_text("\n\n## Only\n\nBody.") == ["## Only\nBody."]

    def test_invalid_heading_level_raises(self) -> None:
        with pytest.raises(ValueError):
            MarkdownTextSplitter(min_split_heading_level=7)
