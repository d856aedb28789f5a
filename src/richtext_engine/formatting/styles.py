"""Markdown token specs and the process-wide style registry."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from richtext_engine.buffer import AttributeKey, TextAttributes
from richtext_engine.config import EngineConfig
from richtext_engine.runtime.telemetry import span

WORDS = r"[^\W_]+(?:\s+[^\W_]+)*"


class MalformedPatternError(ValueError):
    """Raised when a token pattern does not compile or lacks its ``text`` group."""

    def __init__(self, key: AttributeKey, pattern: str, reason: str) -> None:
        super().__init__(f"Pattern for '{key.value}' is malformed ({reason}): {pattern!r}")
        self.key = key
        self.pattern = pattern


class FormatConflictError(RuntimeError):
    """Raised when a second spec is registered for an already bound key."""

    def __init__(self, incoming: "WordFormat", existing: "WordFormat") -> None:
        super().__init__(
            f"Format for '{incoming.key.value}' conflicts with existing "
            f"{existing.delimiter!r} spec"
        )
        self.incoming = incoming
        self.existing = existing


@dataclass(frozen=True, slots=True)
class WordFormat:
    """One markdown token: what it matches, what it styles, how it deformats."""

    key: AttributeKey
    pattern: "re.Pattern[str]"
    style: TextAttributes
    delimiter: str
    only_prefix: bool = False

    @classmethod
    def compile(
        cls,
        key: AttributeKey,
        pattern: str,
        style: TextAttributes,
        delimiter: str,
        *,
        only_prefix: bool = False,
    ) -> "WordFormat":
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise MalformedPatternError(key, pattern, str(exc)) from exc
        if "text" not in compiled.groupindex:
            raise MalformedPatternError(key, pattern, "missing named group 'text'")
        return cls(key, compiled, style, delimiter, only_prefix)

    def markdown(self, text: str) -> str:
        if self.only_prefix:
            return text if text.startswith(self.delimiter) else f"{self.delimiter}{text}"
        return f"{self.delimiter}{text}{self.delimiter}"


class FormatRegistry:
    """Ordered token specs keyed by attribute. Sealed once built."""

    def __init__(self) -> None:
        self._formats: Dict[AttributeKey, WordFormat] = {}
        self._sealed = False

    def register(self, word_format: WordFormat, *, replace: bool = False) -> WordFormat:
        with span(
            "formatting::register_format",
            component="formatting",
            metadata={"key": word_format.key.value},
        ) as handle:
            if self._sealed:
                raise RuntimeError("Format registry is read-only after initialization")
            existing = self._formats.get(word_format.key)
            if existing is not None and not replace:
                handle.add_metadata("conflict", existing.delimiter)
                raise FormatConflictError(word_format, existing)
            self._formats[word_format.key] = word_format
            return word_format

    def seal(self) -> "FormatRegistry":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def get(self, key: AttributeKey) -> Optional[WordFormat]:
        return self._formats.get(key)

    def __iter__(self) -> Iterator[WordFormat]:
        return iter(list(self._formats.values()))

    def __len__(self) -> int:
        return len(self._formats)

    def inline_formats(self) -> List[WordFormat]:
        return [fmt for fmt in self._formats.values() if not fmt.only_prefix]

    def trigger_formats(self) -> List[WordFormat]:
        return [fmt for fmt in self._formats.values() if fmt.only_prefix]

    @property
    def mention_format(self) -> WordFormat:
        return self._formats[AttributeKey.MENTION]

    @property
    def hashtag_format(self) -> WordFormat:
        return self._formats[AttributeKey.HASHTAG]

    def trigger_for(self, character: Optional[str]) -> Optional[WordFormat]:
        for fmt in self.trigger_formats():
            if fmt.delimiter == character:
                return fmt
        return None

    @classmethod
    def default(cls, config: Optional[EngineConfig] = None) -> "FormatRegistry":
        config = config or EngineConfig()
        registry = cls()
        for spec in default_specs(config):
            registry.register(WordFormat.compile(*spec[:4], only_prefix=spec[4]))
        return registry.seal()


def mention_style(config: Optional[EngineConfig] = None) -> TextAttributes:
    return TextAttributes(foreground=(config or EngineConfig()).mention_color)


def default_specs(
    config: EngineConfig,
) -> Tuple[Tuple[AttributeKey, str, TextAttributes, str, bool], ...]:
    mention = re.escape(config.mention_symbol)
    hashtag = re.escape(config.hashtag_symbol)
    return (
        (
            AttributeKey.BOLD,
            rf"\*\*(?P<text>{WORDS})\*\*",
            TextAttributes(bold=True),
            "**",
            False,
        ),
        (
            AttributeKey.ITALIC,
            rf"(?<![*\w])\*(?P<text>{WORDS})\*(?!\*)",
            TextAttributes(italic=True),
            "*",
            False,
        ),
        (
            AttributeKey.UNDERLINE,
            rf"(?<![_\w])_(?P<text>{WORDS})_(?!_)",
            TextAttributes(underline=True),
            "_",
            False,
        ),
        (
            AttributeKey.STRIKETHROUGH,
            rf"(?<![~\w])~(?P<text>{WORDS})~(?!~)",
            TextAttributes(strikethrough=True),
            "~",
            False,
        ),
        (
            AttributeKey.MENTION,
            rf"^{mention}(?P<text>[^\r\n]+)",
            mention_style(config),
            config.mention_symbol,
            True,
        ),
        (
            AttributeKey.HASHTAG,
            rf"^{hashtag}(?P<text>[^\r\n]+)",
            TextAttributes(hashtag=True, foreground=config.mention_color),
            config.hashtag_symbol,
            True,
        ),
    )


__all__ = [
    "FormatConflictError",
    "FormatRegistry",
    "MalformedPatternError",
    "WORDS",
    "WordFormat",
    "default_specs",
    "mention_style",
]
