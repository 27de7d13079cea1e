import re
from dataclasses import dataclass, field
from typing import Optional

from .base import BaseTextSplitter
from .recursive import RecursiveTextSplitter
from .utils import merge_splits

HEADING_PATTERN = re.compile(r"^(#{1,6})(?:\s|$)")
FENCE_PATTERN = re.compile(r"^\s{0,3}(`{3,}|~{3,})")

DEFAULT_MIN_SECTION_BUDGET = 100
BLOCK_JOINER = "\n\n"


@dataclass
class _Block:
    kind: str  # "heading", "code", "table" or "text"
    text: str
    level: int = 0

    @property
    def atomic(self) -> bool:
        return self.kind in ("code", "table")


@dataclass
class _Section:
    breadcrumb: str
    blocks: list[_Block] = field(default_factory=list)


class MarkdownTextSplitter(BaseTextSplitter):
    """Heading-aware splitter for Markdown documents.

    Headings up to ``min_split_heading_level`` start new sections; deeper
    headings stay in the body of the current section. Every chunk of a
    section is prefixed with its heading breadcrumb. Fenced code blocks and
    tables are never split, even when larger than ``chunk_size``.
    """

    name = "Markdown"

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        include_heading_breadcrumb: bool = True,
        min_split_heading_level: int = 2,
        min_section_budget: int = DEFAULT_MIN_SECTION_BUDGET,
    ):
        super().__init__(chunk_size, chunk_overlap)
        if not 1 <= min_split_heading_level <= 6:
            raise ValueError(
                f"min_split_heading_level must be between 1 and 6, got {min_split_heading_level}"
            )
        self.include_heading_breadcrumb = include_heading_breadcrumb
        self.min_split_heading_level = min_split_heading_level
        self.min_section_budget = min_section_budget

    def split_text(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []

        chunks = []
        for section in self._build_sections(self._parse_blocks(text)):
            chunks.extend(self._emit_section(section))
        return chunks

    def _parse_blocks(self, text: str) -> list[_Block]:
        lines = text.replace("\r\n", "\n").split("\n")
        blocks: list[_Block] = []
        paragraph: list[str] = []

        def flush_paragraph() -> None:
            if paragraph:
                blocks.append(_Block("text", "\n".join(paragraph)))
                paragraph.clear()

        i = 0
        while i < len(lines):
            line = lines[i]

            fence = FENCE_PATTERN.match(line)
            if fence:
                flush_paragraph()
                marker = fence.group(1)
                closing = re.compile(r"^\s{0,3}" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}\s*$")
                fenced = [line]
                i += 1
                while i < len(lines):
                    fenced.append(lines[i])
                    i += 1
                    if closing.match(fenced[-1]):
                        break
                blocks.append(_Block("code", "\n".join(fenced)))
                continue

            heading = HEADING_PATTERN.match(line)
            if heading:
                flush_paragraph()
                blocks.append(_Block("heading", line.strip(), level=len(heading.group(1))))
                i += 1
                continue

            if line.lstrip().startswith("|"):
                flush_paragraph()
                table = []
                while i < len(lines) and lines[i].lstrip().startswith("|"):
                    table.append(lines[i])
                    i += 1
                blocks.append(_Block("table", "\n".join(table)))
                continue

            if line.strip():
                paragraph.append(line)
            else:
                flush_paragraph()
            i += 1

        flush_paragraph()
        return blocks

    def _build_sections(self, blocks: list[_Block]) -> list[_Section]:
        headings: list[Optional[str]] = [None] * 7
        current = _Section(breadcrumb="")
        sections = [current]

        for block in blocks:
            if block.kind == "heading" and block.level <= self.min_split_heading_level:
                headings[block.level] = block.text
                for deeper in range(block.level + 1, 7):
                    headings[deeper] = None

                if self.include_heading_breadcrumb:
                    breadcrumb = "\n".join(h for h in headings[1 : block.level + 1] if h)
                else:
                    breadcrumb = block.text
                current = _Section(breadcrumb=breadcrumb)
                sections.append(current)
            elif block.kind == "heading":
                current.blocks.append(_Block("text", block.text))
            else:
                current.blocks.append(block)

        # A heading with no body still yields its own chunk.
        return [s for s in sections if s.blocks or s.breadcrumb]

    def _emit_section(self, section: _Section) -> list[str]:
        prefix = section.breadcrumb
        budget = self.chunk_size - len(prefix) - (1 if prefix else 0)
        budget = max(budget, self.min_section_budget, 1)

        body = BLOCK_JOINER.join(b.text.strip() for b in section.blocks).strip()
        if not body:
            return [prefix] if prefix else []
        if len(body) <= budget:
            return [self._with_prefix(prefix, body)]

        fallback = RecursiveTextSplitter(
            chunk_size=budget,
            chunk_overlap=min(self.chunk_overlap, budget - 1),
            separators=["\n\n", "\n", ""],
            keep_separator=False,
        )
        pieces: list[str] = []
        for block in section.blocks:
            text = block.text.strip()
            if not text:
                continue
            if block.atomic or len(text) <= budget:
                pieces.append(text)
            else:
                pieces.extend(fallback.split_text(text))

        merged = merge_splits(pieces, BLOCK_JOINER, budget, self.chunk_overlap)
        return [self._with_prefix(prefix, m.strip()) for m in merged if m.strip()]

    @staticmethod
    def _with_prefix(prefix: str, content: str) -> str:
        return f"{prefix}\n{content}" if prefix else content
