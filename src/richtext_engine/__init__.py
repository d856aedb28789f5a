"""UI-agnostic rich-text authoring engine."""

from .config import EngineConfig
from .buffer import AttributedBuffer, AttributedText, ListItem, TextAttributes, TextRange
from .mentions import MentionableItem, MentionItem, MentionTracker
from .formatting import FormatRegistry, FormattingEngine, TextFormat
from .codec import from_html, to_html
from .session import EditorSession, EventBus

__all__ = [
    "AttributedBuffer",
    "AttributedText",
    "EditorSession",
    "EngineConfig",
    "EventBus",
    "FormatRegistry",
    "FormattingEngine",
    "ListItem",
    "MentionItem",
    "MentionTracker",
    "MentionableItem",
    "TextAttributes",
    "TextFormat",
    "TextRange",
    "from_html",
    "to_html",
]

__version__ = "0.1.0"
