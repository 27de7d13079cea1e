from .base import BaseContextBuilder
from .builders import (
    DEFAULT_CONTEXT_TEMPLATE,
    DefaultContextBuilder,
    TemplateContextBuilder,
    count_tokens,
)

__all__ = [
    "BaseContextBuilder",
    "DEFAULT_CONTEXT_TEMPLATE",
    "DefaultContextBuilder",
    "TemplateContextBuilder",
    "count_tokens",
]
