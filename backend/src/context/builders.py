import logging
import re
from typing import Optional

import tiktoken

from models.vector import VectorSearchResult
from .base import BaseContextBuilder

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "Answer the question based on the following context:"
DEFAULT_QUESTION_PREFIX = "Question:"
DEFAULT_CONTEXT_TEMPLATE = """Context information:
{context}

Question: {question}

Answer:"""

PLACEHOLDER_PATTERN = re.compile(r"\{(context|question)\}")
ENCODING_CACHE: dict[str, tiktoken.Encoding] = {}


def get_tokenizer(model: str) -> tiktoken.Encoding:
    if model not in ENCODING_CACHE:
        try:
            ENCODING_CACHE[model] = tiktoken.encoding_for_model(model)
        except KeyError:
            ENCODING_CACHE[model] = tiktoken.get_encoding("cl100k_base")
    return ENCODING_CACHE[model]


def count_tokens(text: str, model: str = "gpt-4") -> int:
    return len(get_tokenizer(model).encode(text))


def number_results(results: list[VectorSearchResult]) -> str:
    """Render results as ``[i] content`` blocks separated by blank lines."""
    return "\n\n".join(f"[{i}] {r.record.content}" for i, r in enumerate(results, 1))


class DefaultContextBuilder(BaseContextBuilder):
    """Numbered-reference prompt with an optional source and score per entry.

    Output layout::

        <header>

        [1] (Source: a.txt) [Score: 0.873]
        <content>

        Question: <query>

    When ``max_context_tokens`` is set, trailing results are dropped once the
    entries would exceed that many tokens.
    """

    def __init__(
        self,
        header: str = DEFAULT_HEADER,
        question_prefix: str = DEFAULT_QUESTION_PREFIX,
        include_source: bool = True,
        include_scores: bool = False,
        max_context_tokens: Optional[int] = None,
        tokenizer_model: str = "gpt-4",
    ):
        self.header = header
        self.question_prefix = question_prefix
        self.include_source = include_source
        self.include_scores = include_scores
        self.max_context_tokens = max_context_tokens
        self.tokenizer_model = tokenizer_model

    def _format_entry(self, number: int, result: VectorSearchResult) -> str:
        label = f"[{number}] "
        source = result.record.metadata.get("source")
        if self.include_source and source:
            label += f"(Source: {source}) "
        if self.include_scores:
            label += f"[Score: {result.score:.3f}] "
        return f"{label}\n{result.record.content}\n\n"

    def build_context(self, query: str, results: list[VectorSearchResult]) -> str:
        parts = [f"{self.header}\n\n"]
        used_tokens = 0

        for number, result in enumerate(results, 1):
            entry = self._format_entry(number, result)
            if self.max_context_tokens is not None:
                entry_tokens = count_tokens(entry, self.tokenizer_model)
                if used_tokens + entry_tokens > self.max_context_tokens:
                    logger.warning(
                        f"Context truncated to {number - 1} of {len(results)} results "
                        f"({used_tokens} tokens, limit: {self.max_context_tokens})"
                    )
                    break
                used_tokens += entry_tokens
            parts.append(entry)

        parts.append(f"{self.question_prefix} {query}\n")
        return "".join(parts)


class TemplateContextBuilder(BaseContextBuilder):
    """Substitute numbered results into a user template.

    Only ``{context}`` and ``{question}`` are recognized. Substitution is
    literal, so any other braces in the template are left untouched.
    """

    def __init__(self, template: str = DEFAULT_CONTEXT_TEMPLATE):
        self.template = template

    def build_context(self, query: str, results: list[VectorSearchResult]) -> str:
        values = {"context": number_results(results), "question": query}
        # Single pass so placeholders inside retrieved text are not expanded.
        return PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(1)], self.template)
