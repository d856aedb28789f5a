"""Inline markdown tokens: live rewriting while typing plus batch (de)format."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from richtext_engine.buffer import AttributedText, TextRange
from richtext_engine.runtime import telemetry

from .changes import ChangedText, FormattedText, Formatter
from .styles import WordFormat


def with_caret_on_last(fragment: AttributedText) -> AttributedText:
    if not len(fragment):
        return fragment
    return fragment.map_attributes(
        lambda attributes: replace(attributes, caret=True),
        TextRange(len(fragment) - 1, 1),
    )


class WordsFormatter(Formatter):
    """Rewrites ``**bold**``-style tokens into styled runs."""

    @property
    def formats(self) -> List[WordFormat]:
        return self.engine.registry.inline_formats()

    def format_words(self, change: ChangedText) -> Optional[FormattedText]:
        for word_format in self.formats:
            formatted = self._format_words(change, word_format)
            if formatted is not None:
                return formatted
        return None

    def _format_words(
        self, change: ChangedText, word_format: WordFormat
    ) -> Optional[FormattedText]:
        line_range = change.line_range
        match = word_format.pattern.search(self.buffer.substring(line_range))
        if match is None:
            return None

        match_range = TextRange.between(
            line_range.location + match.start(), line_range.location + match.end()
        )
        fragment = AttributedText(
            match.group("text"), self.body_style.merged(word_format.style)
        )
        if self.buffer.character_at(match_range.max) != " ":
            fragment = fragment + AttributedText(" ", self.body_style)
        fragment = with_caret_on_last(fragment)

        self.buffer.replace(match_range, fragment, label=f"format_{word_format.key.value}")
        telemetry.record_event(
            "format.words",
            level="debug",
            data={"key": word_format.key.value, "range": str(match_range)},
        )
        return self.caret_at(match_range.location + len(fragment))

    # ------------------------------------------------------------------
    # Batch passes

    def format(self, markdown: AttributedText) -> AttributedText:
        for word_format in self.formats:
            markdown = markdown.map_lines(
                lambda line, fmt=word_format: self._format_line(line, fmt)
            )
        return markdown

    @staticmethod
    def _format_line(line: AttributedText, word_format: WordFormat) -> AttributedText:
        for match in reversed(list(word_format.pattern.finditer(line.text))):
            styled = line.slice(TextRange.between(*match.span("text"))).map_attributes(
                lambda attrs: attrs.merged(word_format.style)
            )
            line = line.replace(TextRange.between(match.start(), match.end()), styled)
        return line

    def deformat(self, formatted: AttributedText) -> AttributedText:
        for word_format in self.engine.registry:
            formatted = formatted.map_lines(
                lambda line, fmt=word_format: self._deformat_line(line, fmt)
            )
        return formatted

    @staticmethod
    def _deformat_line(line: AttributedText, word_format: WordFormat) -> AttributedText:
        key = word_format.key
        for found, _ in reversed(line.attribute_ranges(key)):
            if line.text.endswith("\n") and found.max == len(line):
                found = TextRange(found.location, found.length - 1)
            if found.is_empty:
                continue
            inner = line.slice(found).map_attributes(lambda attrs: attrs.cleared(key))
            markdown = word_format.markdown(inner.text)
            head = markdown[: markdown.index(inner.text)]
            tail = markdown[len(head) + len(inner) :]
            plain = (
                AttributedText(head, inner.attributes_at(0))
                + inner
                + AttributedText(tail, inner.attributes_at(len(inner) - 1))
            )
            line = line.replace(found, plain)
        return line


__all__ = ["WordsFormatter", "with_caret_on_last"]
