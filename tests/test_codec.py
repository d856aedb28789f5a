from typing import List

import pytest
from bs4.builder import ParserRejectedMarkup

import richtext_engine.codec.decoder as decoder_module
from richtext_engine.buffer import AttributedText, ListItem, TextAttributes, TextRange
from richtext_engine.codec import from_html, retag_mentions, to_html
from richtext_engine.formatting import FormattingEngine, item_marker
from richtext_engine.mentions import MentionItem

ADA = MentionItem(1, "Ada")
BOB = MentionItem(2, "Bob")
MENTION = TextAttributes(foreground="blue", mention=ADA)


def make_document(markdown: str) -> AttributedText:
    engine = FormattingEngine()
    engine.load(markdown)
    return engine.buffer.snapshot()


def resolver(ids: List[int]) -> List[MentionItem]:
    return [item for item in (ADA, BOB) if item.mentionable_id in ids]


def list_items(text: AttributedText) -> list:
    return [
        line.attributes_at(0).list_item if len(line) else None for line in text.lines()
    ]


def test_bullet_markup_parses_into_bullet_lines() -> None:
    decoded = from_html("<ul><li>A</li><li>B</li></ul>")

    assert decoded.text == "•A\n•B"
    assert list_items(decoded) == [ListItem.bullet(), ListItem.bullet()]


def test_bullet_markup_reencodes_byte_equal() -> None:
    markup = "<ul><li>A</li><li>B</li></ul>"

    assert to_html(from_html(markup)) == markup


def test_encoder_groups_lists_and_breaks_plain_lines() -> None:
    document = make_document("Hi **there**\n* a\n* b\nbye")

    assert to_html(document) == "Hi <b>there</b><br><ul><li>a</li><li>b</li></ul>bye"


def test_encoder_emits_ordered_start_number() -> None:
    document = make_document("3. c\n4. d")

    assert to_html(document) == '<ol start="3"><li>c</li><li>d</li></ol>'


def test_encoder_keeps_blank_lines_and_spaces() -> None:
    document = make_document("a  b\n\nc")

    assert to_html(document) == "a  b<br><br>c"


def test_encoder_escapes_text_and_nests_inline_tags() -> None:
    document = AttributedText.from_segments(
        [("1 < 2 & ", TextAttributes()), ("x", TextAttributes(bold=True, strikethrough=True))]
    )

    assert to_html(document) == "1 &lt; 2 &amp; <del><b>x</b></del>"


def test_encoder_writes_mention_spans() -> None:
    document = AttributedText.from_segments(
        [("hi ", TextAttributes()), ("@Ada", MENTION), (" !", TextAttributes())]
    )

    assert to_html(document) == 'hi <span data-id="1" class="mention">@Ada</span> !'


@pytest.mark.parametrize(
    "markdown",
    [
        "Hi **there**\n* a\n* b\nbye",
        "1. one\n2. _two_\n3. three",
        "7. seven\n8. eight",
        "- dash\n* more\nplain ~gone~ *it*",
        "[x] done\n[_] open\nnext",
        "first\n\nthird",
    ],
)
def test_round_trip_preserves_runs_and_lists(markdown: str) -> None:
    document = make_document(markdown)

    decoded = from_html(to_html(document))

    assert decoded == document


def test_round_trip_preserves_mentions() -> None:
    document = AttributedText.from_segments(
        [("hi ", TextAttributes()), ("@Ada", MENTION), (" and ", TextAttributes())]
    )

    decoded = from_html(to_html(document), resolver)

    assert decoded == document


def test_checkmark_lines_keep_checked_state() -> None:
    document = make_document("[x] done\n[_] open\nnext")

    markup = to_html(document)
    decoded = from_html(markup)

    assert markup == '<li class="checked">done</li><li>open</li>next'
    assert decoded == document
    assert list_items(decoded) == [ListItem.checkmark(True), ListItem.checkmark(False), None]


def test_decoder_reads_inline_styles_and_blocks() -> None:
    decoded = from_html(
        '<p>one <strong>two</strong></p><div><span style="font-style: italic; '
        'color: red">three</span></div><em>four</em>'
    )

    assert decoded.text == "one two\nthree\nfour"
    assert decoded.attributes_at(4) == TextAttributes(bold=True)
    assert decoded.attributes_at(8) == TextAttributes(italic=True, foreground="red")
    assert decoded.attributes_at(14) == TextAttributes(italic=True)


def test_decoder_handles_block_markup_inside_items() -> None:
    decoded = from_html("<ol start='2'>\n<li><p>two</p></li>\n<li>three</li>\n</ol>")

    assert decoded.text == "2.two\n3.three"
    assert list_items(decoded) == [ListItem.ordered(2), ListItem.ordered(3)]


def test_retag_prefers_first_item_with_same_text() -> None:
    twin = MentionItem(9, "Ada")
    text = AttributedText("@Ada meets @Ada")

    tagged = retag_mentions(text, [ADA, twin])

    assert tagged.attributes_at(0).mention == ADA
    assert tagged.attributes_at(11).mention == ADA
    assert tagged.attributes_at(5).mention is None


def test_resolver_receives_every_mention_id() -> None:
    seen: List[List[int]] = []

    def recording(ids: List[int]) -> List[MentionItem]:
        seen.append(list(ids))
        return resolver(ids)

    from_html(
        '<span data-id="2" class="mention">@Bob</span> <span data-id="1">@Ada</span>',
        recording,
    )

    assert seen == [[2, 1]]


def test_parse_failure_returns_none(monkeypatch: pytest.MonkeyPatch) -> None:
    def reject(*_args, **_kwargs):
        raise ParserRejectedMarkup("bad markup")

    monkeypatch.setattr(decoder_module, "BeautifulSoup", reject)

    assert from_html("<ul><li>A</li></ul>") is None


def test_paste_falls_back_to_plain_text(monkeypatch: pytest.MonkeyPatch) -> None:
    def reject(*_args, **_kwargs):
        raise ParserRejectedMarkup("bad markup")

    monkeypatch.setattr(decoder_module, "BeautifulSoup", reject)
    engine = FormattingEngine()
    engine.buffer.set_contents("ab")

    caret = engine.paste_html("<b>x</b>", TextRange.caret(1))

    assert engine.buffer.text == "a<b>x</b>b"
    assert caret == TextRange.caret(9)


def test_paste_inserts_decoded_markup() -> None:
    engine = FormattingEngine()
    engine.buffer.set_contents("ab")

    caret = engine.paste_html("<b>x</b>", TextRange.caret(1))

    assert engine.buffer.text == "axb"
    assert engine.buffer.attributes_at(1) == TextAttributes(bold=True)
    assert caret == TextRange.caret(2)


def test_load_html_replaces_document() -> None:
    engine = FormattingEngine()

    assert engine.load_html("<ol><li>x</li></ol>")
    assert engine.buffer.snapshot() == item_marker(ListItem.ordered(1)) + AttributedText("x")


def test_dashed_lines_share_unordered_group_and_keep_kind() -> None:
    document = make_document("- a\n* b")

    markup = to_html(document)

    assert markup == '<ul><li class="dashed">a</li><li>b</li></ul>'
    assert list_items(from_html(markup)) == [ListItem.dashed(), ListItem.bullet()]
