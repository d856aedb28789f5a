"""Editor session: the host-facing controller around the formatting engine."""

from __future__ import annotations

from typing import Optional

from richtext_engine.buffer import (
    AttributedBuffer,
    AttributedText,
    BufferValidationError,
    ListItem,
    PendingEdit,
    TextRange,
    is_valid_range,
)
from richtext_engine.config import EngineConfig
from richtext_engine.formatting import FormattingEngine, MentionResolver, TextFormat
from richtext_engine.mentions import MentionableItem, MentionTracker
from richtext_engine.runtime import telemetry

from .events import LIST_STYLE, TEXT_CHANGED, TEXT_STYLE, EventBus


class EditorSession:
    """Drives one document through before/apply/after edit notifications.

    Hosts report a raw edit with :meth:`before_text_change`; when it is
    allowed they apply it with :meth:`apply_text_change` and then call
    :meth:`after_text_change`, which runs the formatting deferred from the
    applied edit and returns the caret hint, if any.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        bus: Optional[EventBus] = None,
        engine: Optional[FormattingEngine] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.bus = bus or EventBus()
        self.engine = engine or FormattingEngine(config=self.config)
        self.tracker = MentionTracker(self.engine, emit=self.bus.emit)
        self.selection = TextRange.caret(0)
        self.logger = telemetry.get_logger("richtext_engine.session")
        self._pending: Optional[PendingEdit] = None
        self._selected_style: Optional[TextFormat] = None

    @property
    def buffer(self) -> AttributedBuffer:
        return self.engine.buffer

    @property
    def text(self) -> str:
        return self.buffer.text

    # ------------------------------------------------------------------
    # Host notifications

    def before_text_change(self, text_range: TextRange, text: str) -> bool:
        """Return ``True`` when the host should apply the edit itself."""

        if not self._check_range(text_range):
            return False
        caret = self.tracker.before_text_change(text_range, text)
        if caret is not None:
            self._consumed(caret)
            return False
        if not text and text_range.length == 1:
            formatted = self.engine.handle_before_text_changed(
                TextRange.caret(text_range.max), True
            )
            if formatted is not None:
                self._consumed(formatted.caret_range or TextRange.caret(text_range.location))
                return False
        return True

    def apply_text_change(self, text_range: TextRange, text: str) -> TextRange:
        inserted = self.buffer.replace(
            text_range, AttributedText(text, self.engine.editing_style), label="text_change"
        )
        self._pending = self.buffer.take_pending_edit()
        self.selection = TextRange.caret(inserted.max)
        return self.selection

    def after_text_change(self) -> Optional[TextRange]:
        """Run the pass deferred from the last applied edit; returns the caret hint."""

        pending, self._pending = self._pending, None
        caret: Optional[TextRange] = None
        if self.tracker.after_text_change(self.selection.location) is None:
            if self._selected_style is not None:
                self.engine.editing_style = self._selected_style.to_attributes()
                self._selected_style = None
            formatted = self.engine.process_rich_formatting(pending)
            if formatted is not None and formatted.caret_range is not None:
                caret = formatted.caret_range
                self.selection = caret
        self.buffer.take_pending_edit()
        self._notify_changes()
        return caret

    def selection_changed(self, selection: TextRange) -> None:
        if not self._check_range(selection):
            return
        self.selection = selection
        found = self.engine.style_at_selection(selection)
        if found is None:
            return
        self.bus.emit(LIST_STYLE, found.list_styles)
        self.bus.emit(TEXT_STYLE, found.styles)
        self._selected_style = found

    # ------------------------------------------------------------------
    # Convenience edits

    def insert_text(self, text: str) -> Optional[TextRange]:
        """Replace the selection with ``text`` as if typed; returns the caret hint."""

        edit = self.selection
        if not self.before_text_change(edit, text):
            return self.selection
        self.apply_text_change(edit, text)
        return self.after_text_change() or self.selection

    def delete_backward(self) -> Optional[TextRange]:
        edit = self.selection
        if edit.is_empty:
            if edit.location == 0:
                return None
            edit = TextRange(edit.location - 1, 1)
        if not self.before_text_change(edit, ""):
            return self.selection
        self.apply_text_change(edit, "")
        return self.after_text_change() or self.selection

    def type_text(self, text: str) -> TextRange:
        """Type ``text`` one character at a time."""

        for character in text:
            self.insert_text(character)
        return self.selection

    # ------------------------------------------------------------------
    # Toolbar commands

    def apply_text_format(self, text_format: TextFormat) -> None:
        attributes = text_format.to_attributes()
        self.engine.editing_style = attributes
        if not self.selection.is_empty:
            self.buffer.update_attributes(attributes, self.selection)
            self.buffer.take_pending_edit()
        self._selected_style = None

    def add_or_replace_list_item(self, item: ListItem) -> Optional[TextRange]:
        selection = self.engine.add_or_replace_list_item(item, self.selection)
        if selection is None:
            return None
        self.selection = selection
        self.engine.reformat_following_ordered_items(
            self.buffer.line_range(selection.max).max - 1
        )
        self.buffer.take_pending_edit()
        self._notify_changes()
        return selection

    def remove_list_item(self) -> Optional[TextRange]:
        selection = self.engine.remove_list_item(self.selection)
        if selection is None:
            return None
        self.selection = selection
        self.engine.reformat_following_ordered_items(
            self.buffer.line_range(selection.max).max - 1, reversed=True
        )
        self.buffer.take_pending_edit()
        self._notify_changes()
        return selection

    def set_checkmark(self, value: bool) -> Optional[TextRange]:
        line = self.buffer.line_range(self.selection.location)
        updated = self.engine.set_checkmark(line.location, value)
        self.buffer.take_pending_edit()
        if updated is not None:
            self._notify_changes()
        return updated

    # ------------------------------------------------------------------
    # Mentions

    def add_mention(self, item: MentionableItem, forced: bool = False) -> Optional[TextRange]:
        """Insert ``item`` at the trigger, or at the selection when ``forced``."""

        if forced:
            caret = self.tracker.append_mention(item, self.selection)
        elif self.tracker.in_process:
            caret = self.tracker.add_mention(item, self.selection)
        else:
            return None
        self.buffer.take_pending_edit()
        self.selection = caret
        self._notify_changes()
        return caret

    def end_mention(self) -> None:
        self.tracker.end_mention_process()

    # ------------------------------------------------------------------
    # Import and export

    def to_html(self) -> str:
        return self.engine.to_html()

    def load_html(self, html: str, resolver: Optional[MentionResolver] = None) -> bool:
        loaded = self.engine.load_html(html, resolver)
        if loaded:
            self._reset()
        return loaded

    def paste_html(self, html: str, resolver: Optional[MentionResolver] = None) -> Optional[TextRange]:
        caret = self.engine.paste_html(html, self.selection, resolver)
        self.buffer.take_pending_edit()
        if caret is not None:
            self.selection = caret
            self._notify_changes()
        return caret

    def load_markdown(self, markdown: str) -> None:
        self.engine.load(markdown)
        self._reset()

    def markdown(self) -> str:
        return self.engine.deformatted()

    # ------------------------------------------------------------------
    # Internals

    def _check_range(self, text_range: TextRange) -> bool:
        if is_valid_range(len(self.buffer), text_range):
            return True
        if self.config.strict_ranges:
            raise BufferValidationError(
                f"range outside buffer of length {len(self.buffer)}", range=text_range
            )
        telemetry.record_event(
            "session.out_of_range",
            level="debug",
            data={"range": str(text_range), "length": len(self.buffer)},
        )
        return False

    def _consumed(self, caret: TextRange) -> None:
        self.buffer.take_pending_edit()
        self._pending = None
        self.selection = caret
        self._notify_changes()

    def _reset(self) -> None:
        self._pending = None
        self._selected_style = None
        self.tracker.end_mention_process()
        self.selection = TextRange.caret(len(self.buffer))
        self._notify_changes()

    def _notify_changes(self) -> None:
        self.bus.emit(TEXT_CHANGED, self.buffer.snapshot())
        found = self.engine.style_at_selection(self.selection)
        if found is not None:
            self.bus.emit(LIST_STYLE, found.list_styles)
            self.bus.emit(TEXT_STYLE, found.styles)


__all__ = ["EditorSession"]
