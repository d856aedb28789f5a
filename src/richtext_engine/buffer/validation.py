"""Validation helpers shared across buffer services."""

from __future__ import annotations

from .ranges import TextRange


class BufferValidationError(RuntimeError):
    """Raised when callers hand the buffer out-of-bounds indices or ranges."""

    def __init__(self, message: str, *, range: TextRange | None = None) -> None:
        super().__init__(message)
        self.range = range


def ensure_index(length: int, index: int, *, inclusive: bool = False) -> int:
    upper = length if inclusive else length - 1
    if index < 0 or index > upper:
        raise BufferValidationError(
            f"Index {index} out of range for length {length}",
            range=TextRange.caret(index),
        )
    return index


def ensure_range(length: int, text_range: TextRange) -> TextRange:
    if text_range.location < 0 or text_range.length < 0 or text_range.max > length:
        raise BufferValidationError(
            f"Range {text_range} out of bounds for length {length}", range=text_range
        )
    return text_range


def is_valid_range(length: int, text_range: TextRange) -> bool:
    return 0 <= text_range.location and 0 <= text_range.length and text_range.max <= length


__all__ = ["BufferValidationError", "ensure_index", "ensure_range", "is_valid_range"]
