"""List item values attached to list lines, plus their marker metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from richtext_engine.runtime import telemetry

from .ranges import TextRange

ZERO_WIDTH_SPACE = "\u200b"


class ListKind(str, Enum):
    """Available list flavours."""

    BULLET = "bullet"
    DASHED = "dashed"
    ORDERED = "ordered"
    CHECKMARK = "checkmark"


@dataclass(frozen=True, slots=True)
class ParagraphStyle:
    """Indentation descriptor carried by every list marker character."""

    first_line_head_indent: float = 10.0
    head_indent: float = 10.0
    paragraph_spacing_before: float = 2.5
    paragraph_spacing: float = 0.0


_LIST_PARAGRAPH = ParagraphStyle()
_CHECKMARK_PARAGRAPH = ParagraphStyle(
    first_line_head_indent=26.0, head_indent=26.0, paragraph_spacing=10.0
)

_START_PATTERNS = {
    ListKind.BULLET: re.compile(r"^(\*[ \t]).*"),
    ListKind.DASHED: re.compile(r"^(-[ \t]).*"),
    ListKind.ORDERED: re.compile(r"^((?P<number>[0-9]+)[.][ \t]).*"),
    ListKind.CHECKMARK: re.compile(r"^(\[(?P<bool>_|x)\][ \t]).*"),
}
_ORDERED_RAW = re.compile(r"ordered[(](?P<number>[0-9]+)[)]")
_CHECKMARK_RAW = re.compile(r"checkmark[(](?P<bool>true|false)[)]")


@dataclass(frozen=True, slots=True)
class ListItem:
    """Tagged list marker: bullet/dashed carry a level, ordered a number,
    checkmark a checked flag."""

    kind: ListKind
    level: int = 1
    number: Optional[int] = None
    checked: Optional[bool] = None

    @classmethod
    def bullet(cls, level: int = 1) -> "ListItem":
        return cls(ListKind.BULLET, level=level)

    @classmethod
    def dashed(cls, level: int = 1) -> "ListItem":
        return cls(ListKind.DASHED, level=level)

    @classmethod
    def ordered(cls, number: Optional[int] = None) -> "ListItem":
        return cls(ListKind.ORDERED, number=number)

    @classmethod
    def checkmark(cls, checked: Optional[bool] = None) -> "ListItem":
        return cls(ListKind.CHECKMARK, checked=checked)

    @classmethod
    def all_kinds(cls) -> Tuple["ListItem", ...]:
        return (cls.bullet(), cls.dashed(), cls.ordered(), cls.checkmark())

    @property
    def _position(self) -> int:
        return 1 if self.number is None else self.number

    @property
    def is_ordered(self) -> bool:
        return self.kind is ListKind.ORDERED

    def same_kind(self, other: "ListItem") -> bool:
        return self.kind is other.kind

    @property
    def marker(self) -> str:
        if self.kind is ListKind.BULLET:
            return "•"
        if self.kind is ListKind.DASHED:
            return "–"
        if self.kind is ListKind.ORDERED:
            return f"{self._position}."
        return ZERO_WIDTH_SPACE

    @property
    def next_item(self) -> "ListItem":
        if self.kind is ListKind.ORDERED:
            return replace(self, number=self._position + 1)
        if self.kind is ListKind.CHECKMARK:
            return ListItem.checkmark(False)
        return self

    @property
    def previous_item(self) -> "ListItem":
        if self.kind is ListKind.ORDERED:
            return replace(self, number=self._position - 1)
        if self.kind is ListKind.CHECKMARK:
            return ListItem.checkmark(False)
        return self

    @property
    def kern(self) -> float:
        if self.kind in (ListKind.BULLET, ListKind.DASHED):
            return 6.5
        if self.kind is ListKind.ORDERED:
            return 3.5
        return 0.0

    @property
    def paragraph_style(self) -> ParagraphStyle:
        if self.kind is ListKind.CHECKMARK:
            return _CHECKMARK_PARAGRAPH
        return _LIST_PARAGRAPH

    @property
    def markdown_prefix(self) -> str:
        if self.kind is ListKind.BULLET:
            return "* "
        if self.kind is ListKind.DASHED:
            return "- "
        if self.kind is ListKind.ORDERED:
            return f"{self._position}. "
        return "[x] " if self.checked else "[_] "

    @property
    def group_tag(self) -> str:
        if self.kind in (ListKind.BULLET, ListKind.DASHED):
            return "ul"
        if self.kind is ListKind.ORDERED:
            return "ol"
        return ""

    @property
    def begin_group_tag(self) -> str:
        return f"<{self.group_tag}>" if self.group_tag else ""

    @property
    def end_group_tag(self) -> str:
        return f"</{self.group_tag}>" if self.group_tag else ""

    @property
    def item_tag(self) -> str:
        if self.kind is ListKind.DASHED:
            return '<li class="dashed">'
        if self.kind is ListKind.CHECKMARK and self.checked:
            return '<li class="checked">'
        return "<li>"

    @property
    def raw_value(self) -> str:
        if self.kind is ListKind.ORDERED and self.number is not None:
            return f"ordered({self.number})"
        if self.kind is ListKind.CHECKMARK and self.checked is not None:
            return f"checkmark({'true' if self.checked else 'false'})"
        return self.kind.value

    @classmethod
    def from_raw(cls, raw: object) -> Optional["ListItem"]:
        """Decode an attribute raw value; unknown values mean "no list item"."""

        if isinstance(raw, ListItem):
            return raw
        if isinstance(raw, str):
            if raw == "bullet":
                return cls.bullet()
            if raw == "dashed":
                return cls.dashed()
            if raw == "ordered":
                return cls.ordered()
            if raw == "checkmark":
                return cls.checkmark()
            ordered = _ORDERED_RAW.fullmatch(raw)
            if ordered:
                return cls.ordered(int(ordered.group("number")))
            checkmark = _CHECKMARK_RAW.fullmatch(raw)
            if checkmark:
                return cls.checkmark(checkmark.group("bool") == "true")
        telemetry.record_event(
            "list.unresolvable_raw_value",
            level="warning",
            data={"raw": raw},
        )
        return None

    def match_start(self, line: str) -> Optional[Tuple["ListItem", TextRange]]:
        """Match this kind's list-start prefix (``* ``, ``1. ``...) at ``line`` start."""

        match = _START_PATTERNS[self.kind].match(line)
        if match is None:
            return None
        prefix = TextRange.between(match.start(1), match.end(1))
        if self.kind is ListKind.ORDERED:
            return ListItem.ordered(int(match.group("number"))), prefix
        if self.kind is ListKind.CHECKMARK:
            return ListItem.checkmark(match.group("bool") == "x"), prefix
        return self, prefix

    @classmethod
    def match_line(cls, line: str) -> Optional[Tuple["ListItem", TextRange]]:
        for kind in cls.all_kinds():
            found = kind.match_start(line)
            if found is not None:
                return found
        return None

    def __str__(self) -> str:
        return f"{self.raw_value} list"


__all__ = ["ListItem", "ListKind", "ParagraphStyle", "ZERO_WIDTH_SPACE"]
