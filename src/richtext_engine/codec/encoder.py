"""Attributed text -> grouped HTML (``ul``/``ol``/``li``, inline tags, mention spans)."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from richtext_engine.buffer import AttributedText, ListItem, TextAttributes, TextRange
from richtext_engine.mentions.item import mention_span
from richtext_engine.runtime import telemetry

# A newline followed only by closing/opening tags up to the end of the group.
_TRAILING_BREAK = re.compile(r"\n(?=(?:<[^>]+?>)*$)", re.IGNORECASE)


@dataclass(slots=True)
class ParsableGroup:
    """Consecutive encoded lines sharing one group tag (plain lines never group)."""

    item: Optional[ListItem] = None
    lines: List[str] = field(default_factory=list)

    def accepts(self, item: Optional[ListItem]) -> bool:
        return (
            item is not None
            and self.item is not None
            and self.item.group_tag == item.group_tag
        )

    def begin_tag(self) -> str:
        if self.item is None:
            return ""
        if self.item.is_ordered and self.item.number not in (None, 1):
            return f'<ol start="{self.item.number}">'
        return self.item.begin_group_tag

    def to_html(self, *, trailing_break: bool) -> str:
        content = _TRAILING_BREAK.sub("", "".join(self.lines))
        content = content.strip("\n").replace("\n", "<br>")
        if self.item is not None:
            return f"{self.begin_tag()}{content}{self.item.end_group_tag}"
        return f"{content}<br>" if trailing_break else content


def encode_inline(text: str, attributes: TextAttributes) -> str:
    body = html.escape(text, quote=False)
    if attributes.bold:
        body = f"<b>{body}</b>"
    if attributes.italic:
        body = f"<i>{body}</i>"
    if attributes.underline:
        body = f"<u>{body}</u>"
    if attributes.strikethrough:
        body = f"<del>{body}</del>"
    if attributes.mention is not None:
        return mention_span(attributes.mention, body, escape=False)
    styles = []
    if attributes.foreground:
        styles.append(f"color: {attributes.foreground}")
    if attributes.background:
        styles.append(f"background-color: {attributes.background}")
    if styles:
        body = f'<span style="{"; ".join(styles)}">{body}</span>'
    return body


def encode_line(line: AttributedText) -> Tuple[Optional[ListItem], str]:
    terminated = line.text.endswith("\n")
    body = line.slice(TextRange(0, len(line) - 1)) if terminated else line
    item = body.attributes_at(0).list_item if len(body) else None
    content = "".join(
        encode_inline(text, attributes)
        for text, attributes in body.segments()
        if attributes.list_item is None
    )
    if item is not None:
        return item, f"{item.item_tag}{content}</li>"
    return None, content + ("\n" if terminated else "")


def to_html(text: AttributedText) -> str:
    with telemetry.span(
        "codec::encode", component="codec", metadata={"length": len(text)}
    ) as handle:
        groups: List[ParsableGroup] = []
        for line in text.lines():
            item, encoded = encode_line(line)
            if groups and groups[-1].accepts(item):
                groups[-1].lines.append(encoded)
            else:
                groups.append(ParsableGroup(item, [encoded]))
        handle.add_metadata("groups", len(groups))
        last = len(groups) - 1
        return "".join(
            group.to_html(trailing_break=index < last) for index, group in enumerate(groups)
        )


__all__ = ["ParsableGroup", "encode_inline", "encode_line", "to_html"]
