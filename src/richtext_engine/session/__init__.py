"""Host-facing session: edit notifications in, caret hints and events out."""

from .events import EVENTS, LIST_STYLE, TEXT_CHANGED, TEXT_STYLE, EventBus
from .editor import EditorSession

__all__ = [
    "EVENTS",
    "EditorSession",
    "EventBus",
    "LIST_STYLE",
    "TEXT_CHANGED",
    "TEXT_STYLE",
]
