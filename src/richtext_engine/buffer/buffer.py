"""Mutable attributed buffer with a begin/end editing bracket."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Iterator, List, Optional, Tuple, Union

from richtext_engine.runtime import telemetry

from .attributes import AttributeKey, EditMask, TextAttributes
from .document import AttributeMapper, AttributedText
from .ranges import TextRange
from .validation import ensure_index, ensure_range


@dataclass(frozen=True, slots=True)
class PendingEdit:
    """Coalesced outcome of one outermost editing bracket.

    ``range`` is expressed in post-edit coordinates.
    """

    range: TextRange
    mask: EditMask
    change_in_length: int


Listener = Callable[[PendingEdit], None]


class AttributedBuffer:
    """Owns the document text and its run partition."""

    def __init__(
        self, content: Union[AttributedText, str, None] = None, *, name: str = "document"
    ) -> None:
        self.name = name
        if isinstance(content, str):
            content = AttributedText(content)
        self._content = content or AttributedText()
        self._depth = 0
        self._edited_range: Optional[TextRange] = None
        self._edited_mask = EditMask.NONE
        self._change_in_length = 0
        self._pending: Optional[PendingEdit] = None
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Editing bracket

    def editing(self, label: str = "edit") -> "Transaction":
        return Transaction(self, label)

    def begin_editing(self) -> None:
        self._depth += 1

    def end_editing(self) -> Optional[PendingEdit]:
        if self._depth == 0:
            raise RuntimeError("end_editing() without matching begin_editing()")
        self._depth -= 1
        if self._depth or self._edited_range is None:
            return None
        pending = PendingEdit(
            range=self._edited_range,
            mask=self._edited_mask,
            change_in_length=self._change_in_length,
        )
        self._edited_range = None
        self._edited_mask = EditMask.NONE
        self._change_in_length = 0
        self._pending = pending
        for listener in list(self._listeners):
            listener(pending)
        return pending

    @property
    def is_editing(self) -> bool:
        return self._depth > 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def take_pending_edit(self) -> Optional[PendingEdit]:
        pending, self._pending = self._pending, None
        return pending

    def _edited(self, mask: EditMask, text_range: TextRange, delta: int) -> None:
        replaced = TextRange(text_range.location, text_range.length + delta)
        if self._edited_range is None:
            merged = replaced
        else:
            previous = self._edited_range

            def remap(position: int) -> int:
                if position <= text_range.location:
                    return position
                if position >= text_range.max:
                    return position + delta
                return replaced.max

            merged = TextRange.between(
                remap(previous.location), remap(previous.max)
            ).union(replaced)
        length = len(self._content)
        self._edited_range = TextRange.between(
            min(merged.location, length), min(merged.max, length)
        )
        self._edited_mask |= mask
        self._change_in_length += delta

    # ------------------------------------------------------------------
    # Primitives

    def replace(
        self,
        text_range: TextRange,
        replacement: Union[AttributedText, str],
        *,
        label: str = "replace",
    ) -> TextRange:
        """Replace characters, returning the range the replacement now covers."""

        ensure_range(len(self._content), text_range)
        with self.editing(label):
            before = len(self._content)
            self._content = self._content.replace(text_range, replacement)
            delta = len(self._content) - before
            self._edited(EditMask.CHARACTERS, text_range, delta)
        return TextRange(text_range.location, text_range.length + delta)

    def set_attributes(
        self, attributes: TextAttributes, text_range: TextRange, *, label: str = "set_attributes"
    ) -> None:
        ensure_range(len(self._content), text_range)
        with self.editing(label):
            self._content = self._content.set_attributes(attributes, text_range)
            self._edited(EditMask.ATTRIBUTES, text_range, 0)

    def map_attributes(
        self, mapper: AttributeMapper, text_range: TextRange, *, label: str = "map_attributes"
    ) -> None:
        ensure_range(len(self._content), text_range)
        with self.editing(label):
            self._content = self._content.map_attributes(mapper, text_range)
            self._edited(EditMask.ATTRIBUTES, text_range, 0)

    def update_attributes(self, attributes: TextAttributes, text_range: TextRange) -> None:
        """Merge ``attributes`` into every run of ``text_range``.

        List-tagged runs are kept verbatim; elsewhere underline/strikethrough
        are dropped first so the update decides them wholesale.
        """

        if attributes == TextAttributes():
            return

        def update(existing: TextAttributes) -> TextAttributes:
            if existing.list_item is not None:
                return existing
            return existing.without_decorations().merged(attributes)

        self.map_attributes(update, text_range, label="update_attributes")

    def remove_attributes(self, keys: Tuple[AttributeKey, ...], text_range: TextRange) -> None:
        self.map_attributes(
            lambda existing: existing.cleared(*keys), text_range, label="remove_attributes"
        )

    def set_contents(self, content: Union[AttributedText, str]) -> None:
        if isinstance(content, str):
            content = AttributedText(content)
        self.replace(self.range, content, label="set_contents")

    # ------------------------------------------------------------------
    # Queries

    @property
    def text(self) -> str:
        return self._content.text

    @property
    def length(self) -> int:
        return len(self._content)

    @property
    def range(self) -> TextRange:
        return self._content.range

    def __len__(self) -> int:
        return len(self._content)

    def snapshot(self) -> AttributedText:
        return self._content

    def fragment(self, text_range: TextRange) -> AttributedText:
        return self._content.slice(text_range)

    def substring(self, text_range: TextRange) -> str:
        ensure_range(len(self._content), text_range)
        return self._content.text[text_range.location : text_range.max]

    def character_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self._content):
            return self._content.text[index]
        return None

    def attributes_at(self, index: int) -> TextAttributes:
        return self._content.attributes_at(index)

    def longest_effective_range(
        self, index: int, key: AttributeKey, within: Optional[TextRange] = None
    ) -> Tuple[Any, TextRange]:
        """Value of ``key`` at ``index`` and the widest range sharing it."""

        bounds = ensure_range(len(self._content), within or self.range)
        runs = self._content.runs
        position = self._content.run_index_at(index)
        value = runs[position].attributes.value(key)
        start, end = runs[position].start, runs[position].end
        cursor = position - 1
        while cursor >= 0 and start > bounds.location:
            if runs[cursor].attributes.value(key) != value:
                break
            start = runs[cursor].start
            cursor -= 1
        cursor = position + 1
        while cursor < len(runs) and end < bounds.max:
            if runs[cursor].attributes.value(key) != value:
                break
            end = runs[cursor].end
            cursor += 1
        return value, TextRange.between(max(start, bounds.location), min(end, bounds.max))

    def line_range(self, index: int) -> TextRange:
        """Line containing ``index``, terminator included."""

        text = self._content.text
        ensure_index(len(text), index, inclusive=True)
        start = text.rfind("\n", 0, index) + 1
        newline = text.find("\n", index)
        end = len(text) if newline < 0 else newline + 1
        return TextRange.between(start, end)

    def line_range_for(self, text_range: TextRange) -> TextRange:
        first = self.line_range(text_range.location)
        if text_range.is_empty:
            return first
        last = self.line_range(text_range.max - 1)
        return first.union(last)

    def enumerate_lines(
        self, text_range: Optional[TextRange] = None
    ) -> Iterator[Tuple[TextRange, AttributedText]]:
        target = self.line_range_for(text_range) if text_range else self.range
        start = target.location
        while start < target.max:
            line = self.line_range(start)
            yield line, self._content.slice(line)
            start = line.max


class Transaction(AbstractContextManager["Transaction"]):
    """Scoped begin/end editing bracket traced as ``buffer::<label>``."""

    def __init__(self, buffer: AttributedBuffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._span_cm: Optional[ContextManager[object]] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        self.buffer.begin_editing()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.buffer.end_editing()
        finally:
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["AttributedBuffer", "PendingEdit", "Transaction"]
