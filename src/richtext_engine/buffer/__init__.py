"""Attributed text buffer: ranges, attributes, runs and the editing bracket."""

from .attributes import DECORATION_KEYS, MARKER_KEYS, AttributeKey, EditMask, TextAttributes
from .buffer import AttributedBuffer, PendingEdit, Transaction
from .document import AttributedText, Run
from .list_item import ZERO_WIDTH_SPACE, ListItem, ListKind, ParagraphStyle
from .ranges import TextRange
from .validation import BufferValidationError, ensure_index, ensure_range, is_valid_range

__all__ = [
    "AttributeKey",
    "AttributedBuffer",
    "AttributedText",
    "BufferValidationError",
    "DECORATION_KEYS",
    "EditMask",
    "ListItem",
    "ListKind",
    "MARKER_KEYS",
    "ParagraphStyle",
    "PendingEdit",
    "Run",
    "TextAttributes",
    "TextRange",
    "Transaction",
    "ZERO_WIDTH_SPACE",
    "ensure_index",
    "ensure_range",
    "is_valid_range",
]
