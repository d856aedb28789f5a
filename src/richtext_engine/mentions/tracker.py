"""Mention trigger tracking and atomic mention token insertion/removal."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Callable, Optional

from richtext_engine.buffer import AttributedText, AttributeKey, TextRange
from richtext_engine.runtime import telemetry

from .item import MentionableItem

if TYPE_CHECKING:  # pragma: no cover
    from richtext_engine.formatting.engine import FormattingEngine

MENTION_STARTED = "mention.started"
MENTION_SEARCH = "mention.search"
MENTION_ITEM_REMOVED = "mention.item_removed"
MENTION_SYMBOL_REMOVED = "mention.symbol_removed"
HASHTAG_STARTED = "hashtag.started"

Emit = Callable[[str, object], None]


@dataclass(slots=True)
class MentionState:
    in_process: bool = False
    search_text: str = ""
    symbol: str = ""
    symbol_location: Optional[int] = None


class MentionTracker:
    """Follows ``@`` triggers and keeps mention tokens atomic."""

    def __init__(self, engine: "FormattingEngine", emit: Optional[Emit] = None) -> None:
        self.engine = engine
        self.state = MentionState()
        self._emit = emit or (lambda name, payload: None)

    @property
    def buffer(self):
        return self.engine.buffer

    @property
    def in_process(self) -> bool:
        return self.state.in_process

    def _signal(self, name: str, payload: object) -> None:
        telemetry.record_event(name, level="debug", data={"payload": payload})
        self._emit(name, payload)

    # ------------------------------------------------------------------
    # Edit notifications

    def before_text_change(self, text_range: TextRange, text: str) -> Optional[TextRange]:
        """Observe an edit about to happen.

        Returns a caret range when the edit was consumed by removing a whole
        mention token; ``None`` lets the edit through.
        """

        state = self.state
        if state.in_process and state.symbol_location is not None:
            if text:
                state.search_text += text
                self._signal(MENTION_SEARCH, state.search_text)
            elif text_range.location == state.symbol_location:
                symbol = state.symbol
                self.end_mention_process()
                self._signal(MENTION_SYMBOL_REMOVED, symbol)
            else:
                offset = text_range.location - state.symbol_location - 1
                if not 0 <= offset < len(state.search_text):
                    self.end_mention_process()
                    return None
                search = state.search_text
                state.search_text = search[:offset] + search[offset + max(text_range.length, 1) :]
                self._signal(MENTION_SEARCH, state.search_text)
            return None
        return self._remove_touched_mention(text_range, text)

    def _remove_touched_mention(self, text_range: TextRange, text: str) -> Optional[TextRange]:
        snapshot = self.buffer.snapshot()
        for found, item in snapshot.attribute_ranges(AttributeKey.MENTION):
            if text:
                touched = text_range.is_empty and found.location < text_range.location < found.max
                touched = touched or (not text_range.is_empty and found.intersects(text_range))
            else:
                touched = found.intersects(text_range)
            if not touched:
                continue
            self.buffer.replace(
                found, AttributedText("", self.engine.editing_style), label="remove_mention"
            )
            self.state = MentionState(
                in_process=True,
                symbol=item.symbol,
                symbol_location=found.location,
            )
            self._signal(MENTION_ITEM_REMOVED, item)
            return TextRange.caret(found.location)
        return None

    def after_text_change(self, caret: int) -> Optional[str]:
        """Detect a trigger symbol right before ``caret``; returns its kind."""

        symbol = self.buffer.character_at(caret - 1) if caret > 0 else None
        trigger = self.engine.registry.trigger_for(symbol)
        if trigger is None:
            return None
        if trigger.key is AttributeKey.MENTION:
            self.state = MentionState(
                in_process=True, symbol=trigger.delimiter, symbol_location=caret - 1
            )
            self._signal(MENTION_STARTED, caret - 1)
            return "mention"
        self._signal(HASHTAG_STARTED, caret - 1)
        return "hashtag"

    # ------------------------------------------------------------------
    # Insertion

    def add_mention(self, item: MentionableItem, at: TextRange) -> TextRange:
        """Replace trigger + query with ``item``; returns the caret range."""

        location = self.state.symbol_location
        if location is None or location > at.location or at.location > len(self.buffer):
            return at
        replaced = self._insert(item, TextRange.between(location, at.location))
        self.end_mention_process()
        return replaced

    def append_mention(self, item: MentionableItem, at: TextRange) -> TextRange:
        if at.max > len(self.buffer):
            return at
        caret = self._insert(item, at)
        self.end_mention_process()
        return caret

    def _insert(self, item: MentionableItem, text_range: TextRange) -> TextRange:
        style = self.engine.editing_style.merged(self.engine.registry.mention_format.style)
        token = AttributedText(item.pickable_text, replace(style, mention=item))
        fragment = token + AttributedText(" ", self.engine.editing_style)
        inserted = self.buffer.replace(text_range, fragment, label="add_mention")
        telemetry.record_event(
            "mention.added",
            data={"id": item.mentionable_id, "range": str(inserted)},
        )
        return TextRange.caret(inserted.max)

    def end_mention_process(self) -> None:
        self.state = MentionState()


__all__ = [
    "HASHTAG_STARTED",
    "MENTION_ITEM_REMOVED",
    "MENTION_SEARCH",
    "MENTION_STARTED",
    "MENTION_SYMBOL_REMOVED",
    "MentionState",
    "MentionTracker",
]
