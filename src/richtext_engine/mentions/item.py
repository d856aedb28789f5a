"""Mentionable items: the capability the engine needs from host objects."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class MentionableItem(Protocol):
    """Anything the host can mention: an id, its display text and a trigger."""

    @property
    def mentionable_id(self) -> int: ...

    @property
    def text(self) -> str: ...

    @property
    def symbol(self) -> str: ...

    @property
    def pickable_text(self) -> str: ...


@dataclass(frozen=True, slots=True)
class MentionItem:
    mentionable_id: int
    text: str
    symbol: str = "@"

    @property
    def pickable_text(self) -> str:
        return f"{self.symbol}{self.text}"

    def to_html_span(self) -> str:
        return mention_span(self, self.pickable_text)


def mention_span(item: MentionableItem, content: str, *, escape: bool = True) -> str:
    body = html.escape(content, quote=False) if escape else content
    return f'<span data-id="{item.mentionable_id}" class="mention">{body}</span>'


__all__ = ["MentionItem", "MentionableItem", "mention_span"]
