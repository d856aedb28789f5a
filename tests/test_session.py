from typing import List, Tuple

import pytest

from richtext_engine.buffer import BufferValidationError, TextAttributes, TextRange
from richtext_engine.config import EngineConfig
from richtext_engine.formatting import TextFormat
from richtext_engine.session import (
    EVENTS,
    LIST_STYLE,
    TEXT_CHANGED,
    TEXT_STYLE,
    EditorSession,
    EventBus,
)

BOLD = TextAttributes(bold=True)


def make_session(config: EngineConfig | None = None) -> Tuple[EditorSession, List[Tuple[str, object]]]:
    session = EditorSession(config)
    events: List[Tuple[str, object]] = []
    for name in EVENTS:
        session.bus.subscribe(name, lambda payload, name=name: events.append((name, payload)))
    return session, events


def test_out_of_range_edit_is_refused() -> None:
    session, events = make_session()

    assert session.before_text_change(TextRange(3, 1), "x") is False
    assert session.text == ""
    assert events == []


def test_strict_ranges_raise_validation_error() -> None:
    session, _ = make_session(EngineConfig(strict_ranges=True))

    with pytest.raises(BufferValidationError) as excinfo:
        session.before_text_change(TextRange(3, 1), "x")

    assert excinfo.value.range == TextRange(3, 1)


def test_typing_publishes_snapshot_and_styles() -> None:
    session, events = make_session()

    session.insert_text("a")

    assert [name for name, _ in events] == [TEXT_CHANGED, LIST_STYLE, TEXT_STYLE]
    assert events[0][1].text == "a"
    assert events[1][1] == ()
    assert events[2][1] == ()


def test_loading_list_reports_list_style() -> None:
    session, events = make_session()

    session.load_markdown("1. a")

    assert session.selection == TextRange.caret(3)
    assert (LIST_STYLE, ("order",)) in events


def test_selection_reports_styles_under_caret() -> None:
    session, events = make_session()
    session.load_markdown("**bold** plain")
    events.clear()

    session.selection_changed(TextRange.caret(2))

    assert events == [(LIST_STYLE, ()), (TEXT_STYLE, ("bold",))]


def test_selected_style_carries_into_next_edit() -> None:
    session, _ = make_session()
    session.load_markdown("**bold** plain")
    session.selection_changed(TextRange.caret(2))

    session.insert_text("x")

    assert session.text == "boxld plain"
    assert session.engine.buffer.attributes_at(2) == BOLD
    assert session.engine.editing_style == BOLD


def test_apply_text_format_styles_selection() -> None:
    session, _ = make_session()
    session.load_markdown("hello world")
    session.selection_changed(TextRange(0, 5))

    session.apply_text_format(TextFormat(styles=("bold", "italic")))

    assert session.engine.buffer.attributes_at(0) == TextAttributes(bold=True, italic=True)
    assert session.engine.buffer.attributes_at(5) == TextAttributes()
    assert session.markdown().startswith("***hello*")


def test_apply_text_format_sets_style_for_typing() -> None:
    session, _ = make_session()

    session.apply_text_format(TextFormat(styles=("underline",)))
    session.type_text("hi")

    assert session.engine.buffer.attributes_at(0) == TextAttributes(underline=True)
    assert session.markdown() == "_hi_"


def test_html_round_trip_through_session() -> None:
    session, _ = make_session()

    assert session.load_html("<b>x</b> y")

    assert session.text == "x y"
    assert session.selection == TextRange.caret(3)
    assert session.to_html() == "<b>x</b> y"
    assert session.markdown() == "**x** y"


def test_paste_html_moves_selection() -> None:
    session, _ = make_session()
    session.load_markdown("ab")
    session.selection_changed(TextRange.caret(1))

    caret = session.paste_html("<i>z</i>")

    assert session.text == "azb"
    assert caret == TextRange.caret(2)
    assert session.selection == caret


def test_event_bus_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: List[object] = []
    unsubscribe = bus.subscribe("ping", received.append)

    bus.emit("ping", 1)
    unsubscribe()
    bus.emit("ping", 2)

    assert received == [1]


def test_event_bus_tolerates_unsubscribe_during_emit() -> None:
    bus = EventBus()
    received: List[str] = []

    def once(payload: object) -> None:
        received.append("once")
        bus.unsubscribe("ping", once)

    bus.subscribe("ping", once)
    bus.subscribe("ping", lambda payload: received.append("always"))

    bus.emit("ping")
    bus.emit("ping")

    assert received == ["once", "always", "always"]
