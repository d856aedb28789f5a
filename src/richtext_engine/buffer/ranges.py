"""Half-open character ranges used by every buffer operation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class TextRange:
    """``[location, location + length)`` measured in code points."""

    location: int
    length: int = 0

    @classmethod
    def between(cls, start: int, end: int) -> "TextRange":
        if end < start:
            start, end = end, start
        return cls(start, end - start)

    @classmethod
    def caret(cls, location: int) -> "TextRange":
        return cls(location, 0)

    @property
    def max(self) -> int:
        return self.location + self.length

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def intersects(self, other: "TextRange") -> bool:
        return self.location < other.max and other.location < self.max

    def union(self, other: "TextRange") -> "TextRange":
        return TextRange.between(
            min(self.location, other.location), max(self.max, other.max)
        )

    def shifted(self, offset: int) -> "TextRange":
        return TextRange(self.location + offset, self.length)

    def __str__(self) -> str:
        return f"{{{self.location}, {self.length}}}"
