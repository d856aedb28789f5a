"""Per-edit metadata passed between the buffer and the formatter passes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from richtext_engine.buffer import EditMask, ListItem, ListKind, TextAttributes, TextRange

if TYPE_CHECKING:  # pragma: no cover
    from richtext_engine.buffer import AttributedBuffer

    from .engine import FormattingEngine

TEXT_STYLES = ("bold", "italic", "underline", "strikethrough")
LIST_STYLES = ("bullet", "order")


@dataclass(frozen=True, slots=True)
class ChangedText:
    """One edit as seen by the formatters."""

    contents: str
    mask: EditMask
    range: TextRange
    line_range: TextRange
    list_item: Optional[ListItem] = None

    @property
    def is_new_line(self) -> bool:
        return self.contents == "\n" and EditMask.CHARACTERS in self.mask

    @property
    def can_delete(self) -> bool:
        return self.contents in ("\n", "") and EditMask.CHARACTERS in self.mask

    def __str__(self) -> str:
        labels = {" ": "<space>", "\n": "<newline>"}
        change = labels.get(self.contents, f'"{self.contents}"')
        extras = [f"line {self.line_range}"]
        if self.list_item is not None:
            extras.append(str(self.list_item))
        return f"ChangedText: {change} at {self.range} ({', '.join(extras)})"


@dataclass(frozen=True, slots=True)
class FormattedText:
    """Caret hint produced by a formatting pass."""

    caret_range: Optional[TextRange] = None


@dataclass(frozen=True, slots=True)
class TextFormat:
    """Style found at a selection, as reported to toolbars."""

    styles: Tuple[str, ...] = ()
    list_styles: Tuple[str, ...] = ()
    paragraph_styles: Tuple[str, ...] = ()

    @classmethod
    def from_attributes(
        cls, attributes: Iterable[TextAttributes], list_item: Optional[ListItem] = None
    ) -> "TextFormat":
        found = list(attributes)
        styles = tuple(
            name for name in TEXT_STYLES if any(getattr(attrs, name) for attrs in found)
        )
        lists: Tuple[str, ...] = ()
        if list_item is not None and list_item.kind is ListKind.BULLET:
            lists = ("bullet",)
        elif list_item is not None and list_item.kind is ListKind.ORDERED:
            lists = ("order",)
        return cls(styles=styles, list_styles=lists)

    def has(self, style: str) -> bool:
        return style in self.styles or style in self.list_styles

    def to_attributes(self) -> TextAttributes:
        return TextAttributes(**{name: True for name in self.styles if name in TEXT_STYLES})


class Formatter:
    """Base for passes that rewrite the engine buffer."""

    def __init__(self, engine: "FormattingEngine") -> None:
        self.engine = engine

    @property
    def buffer(self) -> "AttributedBuffer":
        return self.engine.buffer

    @property
    def body_style(self) -> TextAttributes:
        return self.engine.editing_style

    def caret_at(self, location: int) -> FormattedText:
        return FormattedText(caret_range=TextRange.caret(location))


__all__ = [
    "ChangedText",
    "Formatter",
    "FormattedText",
    "LIST_STYLES",
    "TEXT_STYLES",
    "TextFormat",
]
