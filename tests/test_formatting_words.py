from richtext_engine.buffer import AttributedText, EditMask, PendingEdit, TextAttributes, TextRange
from richtext_engine.formatting import FormattingEngine
from richtext_engine.session import EditorSession

BOLD = TextAttributes(bold=True)


def make_engine(markdown: str = "") -> FormattingEngine:
    engine = FormattingEngine()
    if markdown:
        engine.load(markdown)
    return engine


def plain_runs(engine: FormattingEngine) -> list:
    return [(text, attributes) for text, attributes in engine.buffer.snapshot().segments()]


def test_load_formats_bold_token() -> None:
    engine = make_engine("**Hello** world")

    assert plain_runs(engine) == [("Hello", BOLD), (" world", TextAttributes())]


def test_deformat_recovers_bold_token() -> None:
    engine = make_engine("**Hello** world")

    assert engine.deformatted() == "**Hello** world"


def test_markdown_round_trip_for_every_token() -> None:
    markdown = "**bold** *italic* _under_ ~strike~\n* item\n- dash\n1. first\n[x] done"
    engine = make_engine(markdown)

    assert "*" not in engine.buffer.text.split("\n")[0]
    assert engine.deformatted() == markdown


def test_load_styles_each_token_type() -> None:
    engine = make_engine("*it* _un_ ~st~")
    styles = {text: attributes for text, attributes in plain_runs(engine)}

    assert styles["it"] == TextAttributes(italic=True)
    assert styles["un"] == TextAttributes(underline=True)
    assert styles["st"] == TextAttributes(strikethrough=True)


def test_single_star_inside_bold_is_not_italic() -> None:
    engine = make_engine("**a b**")

    assert plain_runs(engine) == [("a b", BOLD)]


def test_live_bold_token_gets_trailing_space_and_caret_hint() -> None:
    engine = make_engine()
    engine.buffer.replace(TextRange.caret(0), "**Hello**")
    pending = engine.buffer.take_pending_edit()

    formatted = engine.perform_rich_formatting(pending)

    assert engine.buffer.text == "Hello "
    assert formatted.caret_range == TextRange.caret(6)
    assert engine.buffer.attributes_at(0) == BOLD
    assert engine.buffer.attributes_at(5) == TextAttributes(caret=True)


def test_live_token_keeps_existing_following_space() -> None:
    engine = make_engine()
    engine.buffer.set_contents("~gone~ rest")
    engine.buffer.take_pending_edit()

    formatted = engine.perform_rich_formatting(
        PendingEdit(TextRange(5, 1), EditMask.CHARACTERS, 1)
    )

    assert engine.buffer.text == "gone rest"
    assert formatted.caret_range == TextRange.caret(4)


def test_unmatched_edit_receives_editing_style() -> None:
    engine = make_engine()
    engine.editing_style = TextAttributes(italic=True)
    engine.buffer.replace(TextRange.caret(0), AttributedText("plain"))

    formatted = engine.perform_rich_formatting(engine.buffer.take_pending_edit())

    assert formatted is None
    assert engine.buffer.attributes_at(0) == TextAttributes(italic=True)


def test_typing_bold_token_through_session() -> None:
    session = EditorSession()

    session.type_text("**Hello**")
    session.type_text("world")

    assert session.text == "Hello world"
    assert session.engine.buffer.attributes_at(0) == BOLD
    assert session.engine.buffer.attributes_at(6) == TextAttributes()
    assert session.markdown() == "**Hello** world"


def test_nested_tokens_keep_inner_styles() -> None:
    engine = make_engine("***Hi*** there")

    assert plain_runs(engine) == [
        ("Hi", TextAttributes(bold=True, italic=True)),
        (" there", TextAttributes()),
    ]
    assert engine.deformatted() == "***Hi*** there"
