"""Immutable attributed text fragments built from contiguous attribute runs."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .attributes import AttributeKey, TextAttributes
from .ranges import TextRange
from .validation import BufferValidationError, ensure_index, ensure_range

Segment = Tuple[str, TextAttributes]
AttributeMapper = Callable[[TextAttributes], TextAttributes]


@dataclass(frozen=True, slots=True)
class Run:
    """Maximal ``[start, end)`` span sharing one attribute set."""

    start: int
    end: int
    attributes: TextAttributes = TextAttributes()

    @property
    def range(self) -> TextRange:
        return TextRange.between(self.start, self.end)

    def __len__(self) -> int:
        return self.end - self.start


class AttributedText:
    """Text plus a run partition. Every operation returns a new fragment.

    Runs always cover the text exactly once, hold at least one character and
    adjacent runs never share an attribute set (they are merged on build).
    """

    __slots__ = ("_text", "_runs")

    def __init__(self, text: str = "", attributes: Optional[TextAttributes] = None) -> None:
        self._text = text
        self._runs: Tuple[Run, ...] = (
            (Run(0, len(text), attributes or TextAttributes()),) if text else ()
        )

    @classmethod
    def _from_parts(cls, text: str, runs: Sequence[Run]) -> "AttributedText":
        fragment = cls.__new__(cls)
        fragment._text = text
        fragment._runs = tuple(runs)
        return fragment

    @classmethod
    def from_segments(cls, segments: Iterable[Segment]) -> "AttributedText":
        pieces: List[str] = []
        runs: List[Run] = []
        cursor = 0
        for text, attributes in segments:
            if not text:
                continue
            end = cursor + len(text)
            if runs and runs[-1].attributes == attributes:
                runs[-1] = Run(runs[-1].start, end, attributes)
            else:
                runs.append(Run(cursor, end, attributes))
            pieces.append(text)
            cursor = end
        return cls._from_parts("".join(pieces), runs)

    @classmethod
    def plain(cls, text: str, attributes: Optional[TextAttributes] = None) -> "AttributedText":
        return cls(text, attributes)

    # ------------------------------------------------------------------
    # Inspection

    @property
    def text(self) -> str:
        return self._text

    @property
    def runs(self) -> Tuple[Run, ...]:
        return self._runs

    @property
    def range(self) -> TextRange:
        return TextRange(0, len(self._text))

    def __len__(self) -> int:
        return len(self._text)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"AttributedText({self._text!r}, runs={len(self._runs)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributedText):
            return NotImplemented
        return self._text == other._text and self._runs == other._runs

    __hash__ = None  # type: ignore[assignment]

    def __add__(self, other: "AttributedText") -> "AttributedText":
        return self.concat(other)

    def segments(self) -> Iterator[Segment]:
        for run in self._runs:
            yield self._text[run.start : run.end], run.attributes

    def _clipped(self, start: int, end: int) -> Iterator[Segment]:
        for run in self._runs:
            if run.end <= start:
                continue
            if run.start >= end:
                break
            lo, hi = max(start, run.start), min(end, run.end)
            yield self._text[lo:hi], run.attributes

    def runs_in(self, text_range: TextRange) -> List[Run]:
        ensure_range(len(self._text), text_range)
        result: List[Run] = []
        for run in self._runs:
            if run.end <= text_range.location:
                continue
            if run.start >= text_range.max:
                break
            result.append(
                Run(max(run.start, text_range.location), min(run.end, text_range.max), run.attributes)
            )
        return result

    def run_index_at(self, index: int) -> int:
        ensure_index(len(self._text), index)
        return bisect.bisect_right(self._runs, index, key=lambda run: run.start) - 1

    def attributes_at(self, index: int) -> TextAttributes:
        return self._runs[self.run_index_at(index)].attributes

    def inherited_attributes(self, text_range: TextRange) -> TextAttributes:
        """Attributes a plain string inherits when it replaces ``text_range``."""

        if not self._text:
            return TextAttributes()
        if text_range.length > 0:
            return self.attributes_at(text_range.location)
        if text_range.location > 0:
            return self.attributes_at(text_range.location - 1)
        return self.attributes_at(0)

    def attribute_ranges(self, key: AttributeKey) -> List[Tuple[TextRange, Any]]:
        """Maximal ranges where ``key`` holds the same non-default value."""

        found: List[Tuple[TextRange, Any]] = []
        for run in self._runs:
            if not run.attributes.has(key):
                continue
            value = run.attributes.value(key)
            if found and found[-1][0].max == run.start and found[-1][1] == value:
                found[-1] = (TextRange.between(found[-1][0].location, run.end), value)
            else:
                found.append((run.range, value))
        return found

    def check_partition(self) -> None:
        cursor = 0
        for run in self._runs:
            if run.start != cursor or run.end <= run.start:
                raise BufferValidationError(
                    f"Run {run.start}..{run.end} breaks the partition at {cursor}",
                    range=run.range,
                )
            cursor = run.end
        if cursor != len(self._text):
            raise BufferValidationError(
                f"Runs cover {cursor} of {len(self._text)} characters",
                range=TextRange(0, cursor),
            )

    # ------------------------------------------------------------------
    # Derivation

    def slice(self, text_range: TextRange) -> "AttributedText":
        ensure_range(len(self._text), text_range)
        return AttributedText.from_segments(self._clipped(text_range.location, text_range.max))

    def concat(self, other: "AttributedText") -> "AttributedText":
        return AttributedText.from_segments([*self.segments(), *other.segments()])

    def replace(
        self, text_range: TextRange, replacement: Union["AttributedText", str]
    ) -> "AttributedText":
        ensure_range(len(self._text), text_range)
        if isinstance(replacement, str):
            replacement = AttributedText(replacement, self.inherited_attributes(text_range))
        return AttributedText.from_segments(
            [
                *self._clipped(0, text_range.location),
                *replacement.segments(),
                *self._clipped(text_range.max, len(self._text)),
            ]
        )

    def map_attributes(
        self, mapper: AttributeMapper, text_range: Optional[TextRange] = None
    ) -> "AttributedText":
        target = ensure_range(len(self._text), text_range or self.range)
        middle = [
            (text, mapper(attributes))
            for text, attributes in self._clipped(target.location, target.max)
        ]
        return AttributedText.from_segments(
            [
                *self._clipped(0, target.location),
                *middle,
                *self._clipped(target.max, len(self._text)),
            ]
        )

    def set_attributes(
        self, attributes: TextAttributes, text_range: Optional[TextRange] = None
    ) -> "AttributedText":
        return self.map_attributes(lambda _: attributes, text_range)

    def lines(self) -> List["AttributedText"]:
        """Split into lines; each keeps its terminator, no empty trailing line."""

        result: List[AttributedText] = []
        start = 0
        while start < len(self._text):
            newline = self._text.find("\n", start)
            end = len(self._text) if newline < 0 else newline + 1
            result.append(self.slice(TextRange.between(start, end)))
            start = end
        return result

    def map_lines(
        self, transform: Callable[["AttributedText"], "AttributedText"]
    ) -> "AttributedText":
        segments: List[Segment] = []
        for line in self.lines():
            segments.extend(transform(line).segments())
        return AttributedText.from_segments(segments)


__all__ = ["AttributedText", "Run", "Segment", "AttributeMapper"]
