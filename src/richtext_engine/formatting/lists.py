"""List markers: recognition, continuation on Enter, removal and renumbering."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from richtext_engine.buffer import (
    MARKER_KEYS,
    ZERO_WIDTH_SPACE,
    AttributedText,
    AttributeKey,
    EditMask,
    ListItem,
    TextAttributes,
    TextRange,
)
from richtext_engine.runtime import telemetry

from .changes import ChangedText, FormattedText, Formatter


def item_style(item: ListItem) -> TextAttributes:
    return TextAttributes(list_item=item, paragraph=item.paragraph_style)


def item_marker(item: ListItem) -> AttributedText:
    """Marker glyphs for ``item``; the last one carries kern and caret."""

    marker = AttributedText(item.marker, item_style(item))
    return marker.map_attributes(
        lambda attributes: replace(attributes, kern=item.kern, caret=True),
        TextRange(len(marker) - 1, 1),
    )


class ListsFormatter(Formatter):
    """Per-line list state machine over the engine buffer."""

    # ------------------------------------------------------------------
    # Lookup

    def list_item_range(self, location: int) -> Optional[Tuple[ListItem, TextRange]]:
        """List item of the line holding ``location`` and its marker range."""

        if location > len(self.buffer):
            return None
        line = self.buffer.line_range(location)
        if line.location >= len(self.buffer):
            return None
        item, marker = self.buffer.longest_effective_range(
            line.location, AttributeKey.LIST, within=line
        )
        if item is None:
            return None
        return item, marker

    def list_item_at(self, location: int) -> Optional[ListItem]:
        found = self.list_item_range(location)
        return found[0] if found else None

    def previous_ordered_item(self, index: int) -> Optional[ListItem]:
        line = self.buffer.line_range(index)
        if line.location > 1 and self.buffer.character_at(line.location - 1) == "\n":
            previous = self.list_item_at(line.location - 2)
            if previous is not None and previous.is_ordered:
                return previous
        return None

    # ------------------------------------------------------------------
    # Marker edits

    def insert_list_item(self, item: ListItem, index: int) -> TextRange:
        line = self.buffer.line_range(index)
        marker = item_marker(item)
        return self.buffer.replace(
            TextRange.caret(line.location), marker, label="insert_list_item"
        )

    def remove_list_item(
        self, location: int
    ) -> Tuple[Optional[ListItem], Optional[TextRange]]:
        found = self.list_item_range(location)
        if found is None:
            return None, None
        item, marker = found
        with self.buffer.editing("remove_list_item"):
            self.buffer.remove_attributes(MARKER_KEYS, marker)
            self.buffer.replace(marker, "")
        return item, marker

    def replace_list_item(self, item: ListItem, location: int) -> Optional[int]:
        """Swap the line's marker for ``item``; returns the length delta."""

        line = self.buffer.line_range(location)
        old_item, removed = self.remove_list_item(line.location)
        if old_item is None or removed is None:
            return None
        inserted = self.insert_list_item(item, removed.location)
        return inserted.length - removed.length

    def update_list_item(self, item: ListItem, location: int) -> Optional[TextRange]:
        """Like ``replace_list_item`` but only between items of the same kind."""

        found = self.list_item_range(location)
        if found is None:
            return None
        old_item, _ = found
        if not old_item.same_kind(item):
            telemetry.record_event(
                "list.incompatible_update",
                level="debug",
                data={"line": location, "old": old_item.raw_value, "new": item.raw_value},
            )
            return None
        line = self.buffer.line_range(location)
        with self.buffer.editing("update_list_item"):
            self.remove_list_item(line.location)
            return self.insert_list_item(item, line.location)

    def reformat_following_ordered_items(
        self, item: Optional[ListItem], line_start: int
    ) -> int:
        """Renumber the ordered lines after ``line_start``; returns how many."""

        updated = 0
        with telemetry.span(
            "format::renumber",
            component="formatting",
            metadata={"from": line_start, "item": item.raw_value if item else "restart"},
        ):
            while True:
                next_line = self.buffer.line_range(line_start).max
                if next_line >= len(self.buffer):
                    break
                item = item.next_item if item is not None else ListItem.ordered(1)
                if self.update_list_item(item, next_line) is None:
                    break
                updated += 1
                line_start = next_line
        return updated

    # ------------------------------------------------------------------
    # Live transitions

    def format_lists(self, change: ChangedText) -> Optional[FormattedText]:
        if change.is_new_line:
            formatted = self.format_empty_list_item(change)
            if formatted is not None:
                return formatted
        formatted = self.format_new_list_item(change)
        if formatted is not None:
            return formatted
        for kind in ListItem.all_kinds():
            formatted = self.format_new_list(kind, change)
            if formatted is not None:
                return formatted
        return None

    def format_new_list(self, kind: ListItem, change: ChangedText) -> Optional[FormattedText]:
        if change.list_item is not None:
            return None
        line = self.buffer.line_range(change.line_range.location)
        found = kind.match_start(self.buffer.substring(line))
        if found is None:
            return None
        item, prefix = found
        prefix = prefix.shifted(line.location)
        inserted = self.buffer.replace(prefix, item_marker(item), label="format_new_list")
        telemetry.record_event("list.started", data={"item": item.raw_value, "line": line.location})
        return self.caret_at(inserted.max)

    def format_new_list_item(self, change: ChangedText) -> Optional[FormattedText]:
        if change.list_item is None or not change.is_new_line:
            return None
        next_item = change.list_item.next_item
        line_start = change.range.max
        inserted = self.buffer.replace(
            TextRange.caret(line_start), item_marker(next_item), label="format_new_list_item"
        )
        if next_item.is_ordered:
            self.reformat_following_ordered_items(next_item, line_start)
        return self.caret_at(inserted.max)

    def format_empty_list_item(self, change: ChangedText) -> Optional[FormattedText]:
        """End the list when Enter/Backspace hits an item holding only its marker."""

        item = change.list_item
        if item is None or not change.can_delete:
            return None

        line = change.line_range
        marker_end = line.location + len(item.marker)

        if change.is_new_line:
            if line.length > len(item.marker) + 1 or self._is_first_item(line):
                return None
            self._delete_characters(line)
            if item.is_ordered:
                self.reformat_following_ordered_items(None, line.location)
            return self.caret_at(line.location)

        edit = change.range.location
        if not line.location <= edit <= marker_end:
            return None
        caret = line.location - 1 if line.location > 0 else line.location
        self._delete_characters(TextRange.between(caret, marker_end))
        previous = item.previous_item
        if previous.is_ordered:
            self.reformat_following_ordered_items(previous, caret)
        return self.caret_at(caret)

    def _is_first_item(self, line: TextRange) -> bool:
        if line.location == 0:
            return True
        previous = self.list_item_at(line.location - 1)
        return previous is None

    def _delete_characters(self, text_range: TextRange) -> None:
        with self.buffer.editing("delete_list_item"):
            self.buffer.set_attributes(self.body_style, text_range)
            self.buffer.replace(text_range, "")

    def changed_text(self, text_range: TextRange, contents: str = "") -> ChangedText:
        return ChangedText(
            contents=contents,
            mask=EditMask.CHARACTERS,
            range=text_range,
            line_range=self.buffer.line_range(text_range.location),
            list_item=self.list_item_at(text_range.location),
        )

    # ------------------------------------------------------------------
    # Batch passes

    def format(self, markdown: AttributedText) -> AttributedText:
        for kind in ListItem.all_kinds():
            markdown = markdown.map_lines(lambda line, kind=kind: self._format_line(line, kind))
        return markdown

    @staticmethod
    def _format_line(line: AttributedText, kind: ListItem) -> AttributedText:
        found = kind.match_start(line.text)
        if found is None:
            return line
        item, prefix = found
        return line.replace(prefix, item_marker(item))

    def deformat(self, formatted: AttributedText) -> AttributedText:
        return formatted.map_lines(self._deformat_line)

    @staticmethod
    def _deformat_line(line: AttributedText) -> AttributedText:
        markers = line.attribute_ranges(AttributeKey.LIST)
        if markers:
            marker, item = markers[0]
            prefix = AttributedText(
                item.markdown_prefix,
                line.attributes_at(marker.location).cleared(*MARKER_KEYS),
            )
            line = line.replace(marker, prefix)
        if ZERO_WIDTH_SPACE not in line.text:
            return line
        return AttributedText.from_segments(
            (text.replace(ZERO_WIDTH_SPACE, ""), attributes)
            for text, attributes in line.segments()
        )


__all__ = ["ListsFormatter", "item_marker", "item_style"]
