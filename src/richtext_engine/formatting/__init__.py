"""Inline markdown and list formatting passes plus the engine driving them."""

from .changes import ChangedText, FormattedText, Formatter, TextFormat
from .styles import (
    FormatConflictError,
    FormatRegistry,
    MalformedPatternError,
    WordFormat,
    mention_style,
)
from .words import WordsFormatter
from .lists import ListsFormatter, item_marker, item_style
from .engine import FormattingEngine, MentionResolver

__all__ = [
    "ChangedText",
    "FormatConflictError",
    "FormatRegistry",
    "FormattedText",
    "Formatter",
    "FormattingEngine",
    "ListsFormatter",
    "MalformedPatternError",
    "MentionResolver",
    "TextFormat",
    "WordFormat",
    "WordsFormatter",
    "item_marker",
    "item_style",
    "mention_style",
]
