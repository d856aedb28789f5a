"""HTML -> attributed text, with a second pass re-tagging mention tokens."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString, Tag

from richtext_engine.buffer import AttributedText, ListItem, TextAttributes, TextRange
from richtext_engine.config import EngineConfig
from richtext_engine.formatting.lists import item_marker
from richtext_engine.formatting.styles import mention_style
from richtext_engine.mentions.item import MentionableItem
from richtext_engine.runtime import telemetry

Resolver = Callable[[List[int]], Sequence[MentionableItem]]

_INLINE_FLAGS: Dict[str, str] = {
    "b": "bold",
    "strong": "bold",
    "i": "italic",
    "em": "italic",
    "u": "underline",
    "ins": "underline",
    "del": "strikethrough",
    "s": "strikethrough",
    "strike": "strikethrough",
}
_BLOCKS = {"p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"}
_SKIPPED = {"script", "style", "head", "title"}


def parse_mention_ids(soup: BeautifulSoup) -> List[int]:
    ids: List[int] = []
    for element in soup.find_all("span"):
        try:
            ids.append(int(element.get("data-id", "")))
        except (TypeError, ValueError):
            continue
    return ids


def _parse_style(raw: str, attributes: TextAttributes) -> TextAttributes:
    for declaration in raw.split(";"):
        name, _, value = declaration.partition(":")
        name, value = name.strip().lower(), value.strip()
        if not value:
            continue
        lowered = value.lower()
        if name == "font-weight" and (lowered == "bold" or lowered.isdigit() and int(lowered) >= 600):
            attributes = replace(attributes, bold=True)
        elif name == "font-style" and lowered == "italic":
            attributes = replace(attributes, italic=True)
        elif name in ("text-decoration", "text-decoration-line"):
            if "underline" in lowered:
                attributes = replace(attributes, underline=True)
            if "line-through" in lowered:
                attributes = replace(attributes, strikethrough=True)
        elif name == "color":
            attributes = replace(attributes, foreground=value)
        elif name in ("background-color", "background"):
            attributes = replace(attributes, background=value)
    return attributes


class DocumentBuilder:
    """Walks a parsed tree, emitting runs line by line."""

    def __init__(self, base: TextAttributes) -> None:
        self.base = base
        self._segments: List[tuple] = []
        self._last_char = ""
        self._pending_break = False
        self._after_marker = False
        self._lists: List[List] = []

    # -- output -------------------------------------------------------

    def _emit(self, text: str, attributes: TextAttributes) -> None:
        if not text:
            return
        self._segments.append((text, attributes))
        self._last_char = text[-1]
        self._after_marker = False

    def _flush_pending(self) -> None:
        if self._pending_break:
            self._pending_break = False
            self._emit("\n", self.base)

    def text(self, text: str, attributes: TextAttributes) -> None:
        if not text:
            return
        self._flush_pending()
        self._emit(text, attributes)

    def line_break(self) -> None:
        self._flush_pending()
        self._emit("\n", self.base)

    def ensure_line_start(self) -> None:
        if self._after_marker:
            return
        self.start_line()

    def start_line(self) -> None:
        self._pending_break = False
        if self._last_char not in ("", "\n"):
            self._emit("\n", self.base)

    def end_block(self) -> None:
        if self._last_char not in ("", "\n"):
            self._pending_break = True

    def result(self) -> AttributedText:
        return AttributedText.from_segments(self._segments)

    # -- tree walk ----------------------------------------------------

    def walk(self, node: Tag, attributes: TextAttributes) -> None:
        for child in node.children:
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                if node.name in ("ul", "ol") and not child.strip():
                    continue
                self.text(str(child), attributes)
            elif isinstance(child, Tag):
                self.element(child, attributes)

    def element(self, tag: Tag, attributes: TextAttributes) -> None:
        name = tag.name.lower()
        if name in _SKIPPED:
            return
        if name == "br":
            if tag.parent is not None and tag.parent.name in ("ul", "ol"):
                return
            self.line_break()
            return

        flag = _INLINE_FLAGS.get(name)
        if flag:
            attributes = replace(attributes, **{flag: True})
        if name == "font" and tag.get("color"):
            attributes = replace(attributes, foreground=tag["color"])
        if tag.get("style"):
            attributes = _parse_style(tag["style"], attributes)

        if name in ("ul", "ol"):
            self.ensure_line_start()
            self._lists.append([name, _start_number(tag)])
            self.walk(tag, attributes)
            self._lists.pop()
            self.end_block()
        elif name == "li":
            self.start_line()
            self._emit_marker(self._next_item(tag))
            self.walk(tag, attributes)
            self.end_block()
        elif name in _BLOCKS:
            self.ensure_line_start()
            self.walk(tag, attributes)
            self.end_block()
        else:
            self.walk(tag, attributes)

    def _next_item(self, tag: Tag) -> ListItem:
        classes = tag.get("class") or ()
        if not self._lists:
            return ListItem.checkmark("checked" in classes)
        context = self._lists[-1]
        if context[0] == "ol":
            number = context[1]
            context[1] += 1
            return ListItem.ordered(number)
        return ListItem.dashed() if "dashed" in classes else ListItem.bullet()

    def _emit_marker(self, item: ListItem) -> None:
        for text, attributes in item_marker(item).segments():
            self._emit(text, attributes)
        self._after_marker = True


def _start_number(tag: Tag) -> int:
    try:
        return int(tag.get("start", 1))
    except (TypeError, ValueError):
        return 1


def retag_mentions(
    text: AttributedText,
    items: Sequence[MentionableItem],
    config: Optional[EngineConfig] = None,
) -> AttributedText:
    """Tag every literal occurrence of an item's pickable text as that mention.

    Items sharing a pickable text resolve to the first one listed.
    """

    by_text: Dict[str, MentionableItem] = {}
    for item in items:
        if item.pickable_text:
            by_text.setdefault(item.pickable_text, item)
    if not by_text:
        return text
    pattern = re.compile(
        "|".join(re.escape(key) for key in sorted(by_text, key=len, reverse=True))
    )
    style = mention_style(config)
    for match in pattern.finditer(text.text):
        item = by_text[match.group(0)]
        text = text.map_attributes(
            lambda attributes, item=item: replace(attributes.merged(style), mention=item),
            TextRange.between(match.start(), match.end()),
        )
    return text


def from_html(
    markup: str,
    resolver: Optional[Resolver] = None,
    *,
    base: Optional[TextAttributes] = None,
    config: Optional[EngineConfig] = None,
) -> Optional[AttributedText]:
    """Decode ``markup``; ``None`` when the parser rejects it."""

    with telemetry.span(
        "codec::decode", component="codec", metadata={"length": len(markup)}
    ) as handle:
        try:
            soup = BeautifulSoup(markup.replace("\n", "<br>"), "html.parser")
        except ParserRejectedMarkup as exc:
            telemetry.record_event(
                "codec.parse_failed", level="warning", data={"reason": str(exc)}
            )
            return None
        ids = parse_mention_ids(soup)
        items = list(resolver(ids)) if resolver is not None else []
        handle.add_metadata("mentions", len(ids))

        builder = DocumentBuilder(base or TextAttributes())
        builder.walk(soup, base or TextAttributes())
        decoded = builder.result()
        if items:
            decoded = retag_mentions(decoded, items, config)
        return decoded


__all__ = [
    "DocumentBuilder",
    "Resolver",
    "from_html",
    "parse_mention_ids",
    "retag_mentions",
]
