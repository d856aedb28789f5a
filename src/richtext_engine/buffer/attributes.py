"""Closed attribute model shared by runs, formatters and the HTML codec."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum, IntFlag
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .list_item import ListItem, ParagraphStyle

if TYPE_CHECKING:  # pragma: no cover
    from richtext_engine.mentions.item import MentionableItem


class AttributeKey(str, Enum):
    """Names of the ``TextAttributes`` fields formatters may query or clear."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    FOREGROUND = "foreground"
    BACKGROUND = "background"
    LIST = "list_item"
    PARAGRAPH = "paragraph"
    KERN = "kern"
    MENTION = "mention"
    HASHTAG = "hashtag"
    CARET = "caret"


class EditMask(IntFlag):
    """What an edit touched: characters, attributes or both."""

    NONE = 0
    CHARACTERS = 1
    ATTRIBUTES = 2


DECORATION_KEYS = (AttributeKey.UNDERLINE, AttributeKey.STRIKETHROUGH)
MARKER_KEYS = (
    AttributeKey.LIST,
    AttributeKey.PARAGRAPH,
    AttributeKey.KERN,
    AttributeKey.CARET,
)

_MAPPING_ALIASES = {"list": AttributeKey.LIST}


@dataclass(frozen=True, slots=True)
class TextAttributes:
    """Attribute set of one run. Default values mean "attribute absent"."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    foreground: Optional[str] = None
    background: Optional[str] = None
    list_item: Optional[ListItem] = None
    paragraph: Optional[ParagraphStyle] = None
    kern: Optional[float] = None
    mention: Optional["MentionableItem"] = None
    hashtag: bool = False
    caret: bool = False

    def value(self, key: AttributeKey) -> Any:
        return getattr(self, key.value)

    def has(self, key: AttributeKey) -> bool:
        value = self.value(key)
        return value is not None and value is not False

    def cleared(self, *keys: AttributeKey) -> "TextAttributes":
        defaults = _defaults()
        return replace(self, **{key.value: defaults[key.value] for key in keys})

    def merged(self, other: "TextAttributes") -> "TextAttributes":
        """Overlay every attribute ``other`` actually sets onto this set."""

        defaults = _defaults()
        changes = {
            name: getattr(other, name)
            for name, default in defaults.items()
            if getattr(other, name) != default
        }
        return replace(self, **changes) if changes else self

    def without_decorations(self) -> "TextAttributes":
        return self.cleared(*DECORATION_KEYS)

    def without_list_marker(self) -> "TextAttributes":
        return self.cleared(*MARKER_KEYS)

    @property
    def is_plain(self) -> bool:
        return self == TextAttributes()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "TextAttributes":
        """Build attributes from a host-supplied ``{name: value}`` mapping.

        ``"list"`` values are raw list strings (``"ordered(3)"``); values that
        do not decode are dropped.
        """

        known = _defaults()
        values: Dict[str, Any] = {}
        for raw_key, value in mapping.items():
            key = _MAPPING_ALIASES.get(raw_key)
            name = key.value if key else raw_key
            if name not in known:
                raise ValueError(f"Unknown text attribute '{raw_key}'")
            if name == AttributeKey.LIST.value:
                value = ListItem.from_raw(value)
                if value is None:
                    continue
            values[name] = value
        return cls(**values)


_DEFAULTS: Dict[str, Any] = {}


def _defaults() -> Dict[str, Any]:
    if not _DEFAULTS:
        _DEFAULTS.update({field.name: field.default for field in fields(TextAttributes)})
    return _DEFAULTS


__all__ = [
    "AttributeKey",
    "EditMask",
    "TextAttributes",
    "DECORATION_KEYS",
    "MARKER_KEYS",
]
