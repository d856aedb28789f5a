"""Executable Textual app that hosts the rich-text engine."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when demo is run
    from rich.text import Text
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use richtext_engine.adapters.textual.app"
    ) from exc

from richtext_engine.config import EngineConfig
from richtext_engine.mentions import MentionItem
from richtext_engine.runtime import telemetry
from richtext_engine.session import EditorSession

from .controller import TextualEditorAdapter, TextualUIHooks

DEFAULT_PEOPLE = ("Ada Lovelace", "Alan Turing", "Grace Hopper", "Linus Torvalds")


def create_default_session(
    config: Optional[EngineConfig] = None,
    *,
    markdown: Optional[str] = None,
    html: Optional[str] = None,
) -> EditorSession:
    """Build an EditorSession, optionally preloaded from markdown or HTML."""

    session = EditorSession(config or EngineConfig.from_env())
    if html is not None:
        session.load_html(html, people_resolver(DEFAULT_PEOPLE))
    elif markdown is not None:
        session.load_markdown(markdown)
    return session


def people_directory(names: Sequence[str], symbol: str = "@") -> List[MentionItem]:
    return [
        MentionItem(mentionable_id=index, text=name, symbol=symbol)
        for index, name in enumerate(names, start=1)
    ]


def people_resolver(names: Sequence[str]):
    directory = people_directory(names)

    def resolve(ids: List[int]) -> List[MentionItem]:
        wanted = set(ids)
        return [item for item in directory if item.mentionable_id in wanted]

    return resolve


def people_candidates(names: Sequence[str]):
    directory = people_directory(names)

    def candidates(query: str) -> List[MentionItem]:
        lowered = query.lower()
        return [item for item in directory if item.text.lower().startswith(lowered)]

    return candidates


@dataclass
class UIState:
    document: Text
    status_text: str = ""


class RichTextApp(App[None]):
    """Minimal Textual UI embedding the rich-text engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#document-view {
		height: 1fr;
		border: round $accent;
		padding: 1 1;
		content-align: left top;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+c", "quit", "Quit"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, session: Optional[EditorSession] = None) -> None:
        super().__init__()
        self._state = UIState(document=Text())
        self.session = session or create_default_session()
        self.adapter: TextualEditorAdapter | None = None
        self._document_widget: Static | None = None
        self._status_widget: Static | None = None
        self._logger = telemetry.get_logger("richtext_engine.adapters.textual")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="document-area"):
            self._document_widget = Static("", id="document-view")
            yield self._document_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    def on_mount(self) -> None:
        hooks = TextualUIHooks(
            update_document=self._update_document,
            update_status=self._update_status,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualEditorAdapter(
            self.session, hooks, candidates=people_candidates(DEFAULT_PEOPLE)
        )

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        normalized = self._normalize_key(event)
        if normalized is None:
            return
        key, text, modifiers = normalized
        if self.adapter.handle_textual_key(key, text=text, modifiers=modifiers):
            event.stop()

    def _update_document(self, document: Text) -> None:
        self._state.document = document
        if self._document_widget:
            self._document_widget.update(document)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "mention.started":
            self._update_status("mention: type a name, tab to pick, esc to cancel")

    def _log_line(self, line: str) -> None:
        self._logger.debug(line)

    @staticmethod
    def _normalize_key(
        event: events.Key,
    ) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
        key = event.key
        if key in {"ctrl+c", "ctrl+q"}:
            return None
        modifiers = tuple(part.upper() for part in key.split("+")[:-1])
        if key in {"enter", "return"}:
            return ("enter", None, modifiers)
        if event.is_printable and event.character:
            return (event.character, event.character, modifiers)
        return (key, None, modifiers)


def _env_path(key: str) -> Optional[Path]:
    value = os.environ.get(key)
    return Path(value) if value else None


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the rich-text engine Textual demo.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--markdown",
        type=Path,
        default=_env_path("RICHTEXT_ENGINE_DEMO_MARKDOWN"),
        help="Markdown-ish file to load at startup",
    )
    source.add_argument(
        "--html",
        type=Path,
        help="HTML file (as produced by to_html) to load at startup",
    )
    parser.add_argument(
        "--print-html",
        action="store_true",
        help="Print the document as HTML after the app exits",
    )
    parser.add_argument(
        "--print-markdown",
        action="store_true",
        help="Print the deformatted document after the app exits",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production"),
        default=os.environ.get("RICHTEXT_ENGINE_DEMO_LOG_PRESET", "production"),
        help="telelog preset; production keeps the console clear for the UI",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    session = create_default_session(
        markdown=args.markdown.read_text(encoding="utf-8") if args.markdown else None,
        html=args.html.read_text(encoding="utf-8") if args.html else None,
    )
    app = RichTextApp(session)
    app.run()
    if args.print_html:
        print(session.to_html())
    if args.print_markdown:
        print(session.markdown())


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
