"""Event names and the bus the session publishes them on."""

from __future__ import annotations

from typing import Callable, Dict, List

from richtext_engine.mentions import (
    HASHTAG_STARTED,
    MENTION_ITEM_REMOVED,
    MENTION_SEARCH,
    MENTION_STARTED,
    MENTION_SYMBOL_REMOVED,
)

TEXT_CHANGED = "text.changed"
TEXT_STYLE = "format.text_style"
LIST_STYLE = "format.list_style"

EVENTS = (
    TEXT_CHANGED,
    TEXT_STYLE,
    LIST_STYLE,
    MENTION_STARTED,
    MENTION_SEARCH,
    MENTION_ITEM_REMOVED,
    MENTION_SYMBOL_REMOVED,
    HASHTAG_STARTED,
)

Callback = Callable[[object], None]


class EventBus:
    """Minimal event bus delivering session signals to host callbacks."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> Callable[[], None]:
        self._subscribers.setdefault(event, []).append(callback)
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


__all__ = [
    "EVENTS",
    "EventBus",
    "LIST_STYLE",
    "TEXT_CHANGED",
    "TEXT_STYLE",
]
