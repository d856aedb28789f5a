"""Minimal Textual adapter that wires an EditorSession into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from rich.style import Style
from rich.text import Text

from richtext_engine.buffer import AttributedText, ListItem, TextAttributes, TextRange
from richtext_engine.formatting import TextFormat
from richtext_engine.formatting.changes import TEXT_STYLES
from richtext_engine.mentions import MentionableItem
from richtext_engine.session import EVENTS, LIST_STYLE, TEXT_STYLE, EditorSession


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_document: Callable[[Text], None]
    update_status: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


CandidateSource = Callable[[str], Sequence[MentionableItem]]

LIST_SHORTCUTS: Dict[str, Callable[[], ListItem]] = {
    "ctrl+l": ListItem.bullet,
    "ctrl+d": ListItem.dashed,
    "ctrl+o": lambda: ListItem.ordered(1),
    "ctrl+k": lambda: ListItem.checkmark(False),
}
STYLE_SHORTCUTS: Dict[str, str] = {
    "ctrl+b": "bold",
    "ctrl+t": "italic",
    "ctrl+u": "underline",
    "ctrl+s": "strikethrough",
}


def rich_style(attributes: TextAttributes) -> Style:
    return Style(
        bold=attributes.bold or None,
        italic=attributes.italic or None,
        underline=attributes.underline or None,
        strike=attributes.strikethrough or None,
        color=attributes.foreground,
        bgcolor=attributes.background,
    )


def _append(rendered: Text, text: AttributedText) -> None:
    for segment, attributes in text.segments():
        rendered.append(segment, style=rich_style(attributes))


def render_document(text: AttributedText, selection: Optional[TextRange] = None) -> Text:
    """Rich rendition of ``text`` with the selection (or caret) reversed."""

    rendered = Text()
    if selection is None or not selection.is_empty:
        _append(rendered, text)
        if selection is not None:
            rendered.stylize("reverse", selection.location, selection.max)
        return rendered
    at = selection.location
    if at < len(text) and text.text[at] != "\n":
        _append(rendered, text)
        rendered.stylize("reverse", at, at + 1)
        return rendered
    # a caret at a line end gets a cell of its own
    _append(rendered, text.slice(TextRange(0, at)))
    rendered.append(" ", style="reverse")
    _append(rendered, text.slice(TextRange.between(at, len(text))))
    return rendered


class TextualEditorAdapter:
    """Bridges EditorSession + bus events to a Textual-friendly surface."""

    def __init__(
        self,
        session: EditorSession,
        hooks: TextualUIHooks,
        *,
        candidates: Optional[CandidateSource] = None,
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.candidates = candidates
        self._styles: Tuple[str, ...] = ()
        self._list_styles: Tuple[str, ...] = ()
        self._subscribe_events()
        self._refresh_document()
        self._refresh_status()

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> bool:
        """Translate a Textual key into session calls; ``False`` when ignored."""

        normalized_modifiers = tuple(str(mod).upper() for mod in modifiers)
        self._log_state("key ->", key=key, text=text, mods=normalized_modifiers)
        handled = self._dispatch(key, text)
        if handled:
            self._refresh_document()
            self._refresh_status()
        self._log_state("result <-", handled=handled)
        return handled

    def _dispatch(self, key: str, text: Optional[str]) -> bool:
        session = self.session
        if key == "enter":
            session.insert_text("\n")
        elif key == "backspace":
            session.delete_backward()
        elif key in ("left", "right", "home", "end"):
            self._move(key)
        elif key == "tab":
            return self._complete_mention()
        elif key == "escape":
            session.end_mention()
        elif key == "ctrl+r":
            session.remove_list_item()
        elif key in LIST_SHORTCUTS:
            session.add_or_replace_list_item(LIST_SHORTCUTS[key]())
        elif key in STYLE_SHORTCUTS:
            self._toggle_style(STYLE_SHORTCUTS[key])
        elif text and len(text) == 1 and text.isprintable():
            session.insert_text(text)
        else:
            return False
        return True

    def _move(self, key: str) -> None:
        session = self.session
        caret = session.selection.max if key == "right" else session.selection.location
        if key == "left":
            caret = max(caret - 1, 0)
        elif key == "right":
            caret = min(caret + 1, len(session.buffer))
        elif key == "home":
            caret = session.buffer.line_range(caret).location
        else:
            line = session.buffer.line_range(caret)
            caret = line.max - 1 if session.buffer.substring(line).endswith("\n") else line.max
        session.selection_changed(TextRange.caret(caret))

    def _toggle_style(self, name: str) -> None:
        active = set(self._styles) ^ {name}
        self.session.apply_text_format(
            TextFormat(styles=tuple(style for style in TEXT_STYLES if style in active))
        )
        self._styles = tuple(style for style in TEXT_STYLES if style in active)

    def _complete_mention(self) -> bool:
        tracker = self.session.tracker
        if not tracker.in_process or self.candidates is None:
            return False
        found = list(self.candidates(tracker.state.search_text))
        if not found:
            self.hooks.update_status(f"no match for {tracker.state.search_text!r}")
            return True
        self.session.add_mention(found[0])
        return True

    def _subscribe_events(self) -> None:
        bus = self.session.bus
        for event in EVENTS:
            bus.subscribe(event, lambda payload, name=event: self._handle_event(name, payload))

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        if name == TEXT_STYLE and isinstance(payload, tuple):
            self._styles = payload
            return
        if name == LIST_STYLE and isinstance(payload, tuple):
            self._list_styles = payload
            return
        self.hooks.handle_event(name, payload)
        if name.startswith(("mention", "hashtag")):
            self.hooks.update_status(f"{name}:{payload}")

    def _refresh_document(self) -> None:
        self.hooks.update_document(
            render_document(self.session.buffer.snapshot(), self.session.selection)
        )

    def _refresh_status(self) -> None:
        location = self.session.selection.location
        line = self.session.buffer.line_range(location)
        row = self.session.text.count("\n", 0, line.location) + 1
        parts = [f"{row}:{location - line.location + 1}"]
        if self._styles:
            parts.append("+".join(self._styles))
        if self._list_styles:
            parts.append(f"list={'+'.join(self._list_styles)}")
        if self.session.tracker.in_process:
            parts.append(f"mention={self.session.tracker.state.search_text!r}")
        self.hooks.update_status("  ".join(parts))

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        session = self.session
        return {
            "selection": str(session.selection),
            "length": len(session.buffer),
            "buffer": session.buffer.name,
            "mention": session.tracker.in_process,
        }


__all__ = ["TextualEditorAdapter", "TextualUIHooks", "render_document", "rich_style"]
