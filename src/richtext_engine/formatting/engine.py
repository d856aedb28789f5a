"""Formatting engine: the storage façade the session drives edit by edit."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from richtext_engine.buffer import (
    AttributedBuffer,
    AttributedText,
    AttributeKey,
    EditMask,
    ListItem,
    PendingEdit,
    TextAttributes,
    TextRange,
    is_valid_range,
)
from richtext_engine.codec import from_html, to_html
from richtext_engine.config import EngineConfig
from richtext_engine.mentions.item import MentionableItem
from richtext_engine.runtime import telemetry

from .changes import ChangedText, FormattedText, TextFormat
from .lists import ListsFormatter
from .styles import FormatRegistry
from .words import WordsFormatter

MentionResolver = Callable[[List[int]], Sequence[MentionableItem]]


class FormattingEngine:
    """Owns the buffer plus the list and inline formatters acting on it."""

    def __init__(
        self,
        buffer: Optional[AttributedBuffer] = None,
        *,
        config: Optional[EngineConfig] = None,
        registry: Optional[FormatRegistry] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.buffer = buffer or AttributedBuffer()
        self.registry = registry or FormatRegistry.default(self.config)
        self.editing_style = TextAttributes()
        self.words = WordsFormatter(self)
        self.lists = ListsFormatter(self)

    # ------------------------------------------------------------------
    # Live formatting

    def changed_text(self, pending: PendingEdit) -> ChangedText:
        edited = pending.range
        line = self.buffer.line_range(edited.location)
        return ChangedText(
            contents=self.buffer.substring(edited),
            mask=pending.mask,
            range=edited,
            line_range=line.union(edited),
            list_item=self.lists.list_item_at(line.location),
        )

    def perform_rich_formatting(self, pending: PendingEdit) -> Optional[FormattedText]:
        if not is_valid_range(len(self.buffer), pending.range):
            return None
        change = self.changed_text(pending)
        with telemetry.span(
            "format::rich",
            component="formatting",
            metadata={"change": str(change)},
        ):
            for format_pass in (self.lists.format_lists, self.words.format_words):
                formatted = format_pass(change)
                if formatted is not None:
                    return formatted
            if not change.range.is_empty:
                self.buffer.set_attributes(self.editing_style, change.range)
        return None

    def process_rich_formatting(
        self, pending: Optional[PendingEdit]
    ) -> Optional[FormattedText]:
        """Run the deferred pass for the edit recorded one cycle earlier."""

        if pending is None:
            return None
        return self.perform_rich_formatting(pending)

    def handle_before_text_changed(
        self, selected_range: TextRange, is_back: bool
    ) -> Optional[FormattedText]:
        """Backspace landing inside a list marker removes the whole item."""

        if not is_back or selected_range.location > len(self.buffer):
            return None
        found = self.lists.list_item_range(selected_range.location)
        if found is None:
            return None
        item, _ = found
        line = self.buffer.line_range(selected_range.location)
        if not line.location <= selected_range.location <= line.location + len(item.marker):
            return None
        change = ChangedText(
            contents="",
            mask=EditMask.CHARACTERS,
            range=selected_range,
            line_range=line,
            list_item=item,
        )
        return self.lists.format_empty_list_item(change)

    # ------------------------------------------------------------------
    # Lists

    def add_or_replace_list_item(
        self, item: ListItem, selected_range: TextRange
    ) -> Optional[TextRange]:
        new_item = item
        if item.is_ordered:
            previous = self.lists.previous_ordered_item(selected_range.location)
            new_item = previous.next_item if previous is not None else item

        if selected_range.length > 0:
            line_count = sum(1 for _ in self.buffer.enumerate_lines(selected_range))
        else:
            line_count = 1

        result: Optional[TextRange] = None
        next_range: Optional[TextRange] = selected_range
        with self.buffer.editing("add_or_replace_list_item"):
            for _ in range(line_count):
                if next_range is None:
                    break
                part = self._add_or_replace_list_item(new_item, next_range)
                next_index = self.buffer.line_range(part.location).max
                if next_index < len(self.buffer):
                    next_range = TextRange.caret(next_index)
                    new_item = new_item.next_item
                else:
                    next_range = None
                if result is None:
                    result = part
        return result

    def _add_or_replace_list_item(self, item: ListItem, text_range: TextRange) -> TextRange:
        delta = self.lists.replace_list_item(item, text_range.location)
        if delta is not None:
            return TextRange(max(text_range.location + delta, 0), text_range.length)
        inserted = self.lists.insert_list_item(item, text_range.location)
        return TextRange(text_range.location + inserted.length, text_range.length)

    def remove_list_item(self, selected_range: TextRange) -> Optional[TextRange]:
        line = self.buffer.line_range(selected_range.location)
        if line.is_empty:
            return None
        has_caret = any(
            run.attributes.caret for run in self.buffer.snapshot().runs_in(line)
        )
        if not has_caret:
            return None
        _, removed = self.lists.remove_list_item(line.location)
        if removed is None:
            return None
        return TextRange(
            max(selected_range.location - removed.length, 0), selected_range.length
        )

    def reformat_following_ordered_items(self, at: int, reversed: bool = False) -> None:
        if not 0 < at < len(self.buffer):
            return
        line = self.buffer.line_range(at)
        item = self.lists.list_item_at(line.location)
        if reversed:
            item = None
        elif item is None or not item.is_ordered:
            return
        self.lists.reformat_following_ordered_items(item, line.location)

    def insert_checkmark(self, index: int, value: bool = False) -> TextRange:
        return self.lists.insert_list_item(ListItem.checkmark(value), index)

    def set_checkmark(self, line_location: int, value: bool) -> Optional[TextRange]:
        return self.lists.update_list_item(ListItem.checkmark(value), line_location)

    # ------------------------------------------------------------------
    # Queries

    def style_at_selection(self, selected_range: TextRange) -> Optional[TextFormat]:
        if not 0 <= selected_range.location <= len(self.buffer):
            return None
        probe = selected_range
        if probe.is_empty and probe.location > 0:
            probe = TextRange(probe.location - 1, 1)
        if not is_valid_range(len(self.buffer), probe):
            return None
        attributes = [run.attributes for run in self.buffer.snapshot().runs_in(probe)]
        return TextFormat.from_attributes(
            attributes, self.lists.list_item_at(selected_range.location)
        )

    def mentions(self) -> List[MentionableItem]:
        return [
            item
            for _, item in self.buffer.snapshot().attribute_ranges(AttributeKey.MENTION)
        ]

    # ------------------------------------------------------------------
    # Markdown and HTML IO

    def load(self, markdown: str) -> None:
        """Replace the buffer with the formatted form of ``markdown``."""

        with telemetry.span("format::load", component="formatting"):
            text = AttributedText(markdown, self.editing_style)
            for format_pass in (self.words.format, self.lists.format):
                text = format_pass(text)
            self.buffer.set_contents(text)
        self.buffer.take_pending_edit()

    def deformatted(self) -> str:
        text = self.buffer.snapshot()
        for deformat_pass in (self.words.deformat, self.lists.deformat):
            text = deformat_pass(text)
        return text.text

    def to_html(self) -> str:
        return to_html(self.buffer.snapshot())

    def load_html(self, html: str, resolver: Optional[MentionResolver] = None) -> bool:
        decoded = from_html(html, resolver, base=self.editing_style, config=self.config)
        if decoded is None:
            return False
        self.buffer.set_contents(decoded)
        self.buffer.take_pending_edit()
        return True

    def paste_html(
        self,
        html: str,
        at: TextRange,
        resolver: Optional[MentionResolver] = None,
    ) -> Optional[TextRange]:
        """Insert decoded ``html`` over ``at``; plain text when it cannot parse."""

        if not is_valid_range(len(self.buffer), at):
            return None
        fragment = from_html(html, resolver, base=self.editing_style, config=self.config)
        if fragment is None:
            fragment = AttributedText(html, self.editing_style)
        inserted = self.buffer.replace(at, fragment, label="paste_html")
        return TextRange.caret(inserted.max)


__all__ = ["FormattingEngine", "MentionResolver"]
