from typing import List

import pytest
from hypothesis import given
from hypothesis import strategies as st

from richtext_engine.buffer import (
    AttributedBuffer,
    AttributedText,
    AttributeKey,
    BufferValidationError,
    EditMask,
    ListItem,
    PendingEdit,
    TextAttributes,
    TextRange,
)

BOLD = TextAttributes(bold=True)


def make_buffer(*segments: tuple) -> AttributedBuffer:
    return AttributedBuffer(AttributedText.from_segments(segments))


attributes_strategy = st.builds(
    TextAttributes,
    bold=st.booleans(),
    italic=st.booleans(),
    underline=st.booleans(),
    foreground=st.sampled_from([None, "red", "blue"]),
)
edit_strategy = st.tuples(
    st.integers(min_value=0, max_value=40),
    st.integers(min_value=0, max_value=6),
    st.text(alphabet="ab \n", max_size=5),
    attributes_strategy,
)


@given(st.lists(edit_strategy, max_size=25))
def test_runs_partition_text_after_any_edit_sequence(edits) -> None:
    text = AttributedText()
    for start, length, inserted, attributes in edits:
        start = min(start, len(text))
        length = min(length, len(text) - start)
        text = text.replace(TextRange(start, length), AttributedText(inserted, attributes))

        text.check_partition()
        assert sum(len(run) for run in text.runs) == len(text)
        for left, right in zip(text.runs, text.runs[1:]):
            assert left.attributes != right.attributes


@given(st.lists(st.tuples(st.text(alphabet="xy\n", max_size=4), attributes_strategy), max_size=12))
def test_from_segments_merges_equal_neighbours(segments) -> None:
    text = AttributedText.from_segments(segments)

    text.check_partition()
    assert text.text == "".join(piece for piece, _ in segments)


def test_replace_returns_covered_range() -> None:
    buffer = AttributedBuffer("hello")

    covered = buffer.replace(TextRange.caret(2), "abc")

    assert covered == TextRange(2, 3)
    assert buffer.text == "heabcllo"


def test_plain_string_replacement_inherits_preceding_attributes() -> None:
    buffer = make_buffer(("ab", BOLD), ("cd", TextAttributes()))

    buffer.replace(TextRange.caret(2), "x")

    assert buffer.attributes_at(2) == BOLD
    assert buffer.snapshot().runs[0].end == 3


def test_nested_transactions_coalesce_into_one_pending_edit() -> None:
    buffer = AttributedBuffer("hello world")
    seen: List[PendingEdit] = []
    buffer.subscribe(seen.append)

    with buffer.editing("batch"):
        buffer.replace(TextRange(0, 5), "HELLO")
        buffer.set_attributes(BOLD, TextRange(6, 5))
        assert buffer.is_editing

    pending = buffer.take_pending_edit()
    assert seen == [pending]
    assert pending.range == TextRange(0, 11)
    assert pending.mask == EditMask.CHARACTERS | EditMask.ATTRIBUTES
    assert pending.change_in_length == 0
    assert buffer.take_pending_edit() is None


def test_pending_edit_tracks_length_change() -> None:
    buffer = AttributedBuffer("abc")

    buffer.replace(TextRange(1, 1), "")

    pending = buffer.take_pending_edit()
    assert pending.range == TextRange.caret(1)
    assert pending.change_in_length == -1


def test_unsubscribe_stops_notifications() -> None:
    buffer = AttributedBuffer("abc")
    seen: List[PendingEdit] = []
    unsubscribe = buffer.subscribe(seen.append)

    unsubscribe()
    buffer.replace(TextRange.caret(0), "x")

    assert seen == []


def test_end_editing_without_begin_raises() -> None:
    with pytest.raises(RuntimeError):
        AttributedBuffer().end_editing()


def test_out_of_range_edits_raise_validation_error() -> None:
    buffer = AttributedBuffer("abc")

    with pytest.raises(BufferValidationError) as excinfo:
        buffer.replace(TextRange(2, 5), "x")

    assert excinfo.value.range == TextRange(2, 5)
    assert buffer.text == "abc"


def test_line_range_includes_terminator() -> None:
    buffer = AttributedBuffer("ab\ncd\n")

    assert buffer.line_range(1) == TextRange(0, 3)
    assert buffer.line_range(2) == TextRange(0, 3)
    assert buffer.line_range(3) == TextRange(3, 3)
    assert buffer.line_range(6) == TextRange(6, 0)
    assert buffer.line_range_for(TextRange(1, 3)) == TextRange(0, 6)


def test_enumerate_lines_yields_each_line_fragment() -> None:
    buffer = AttributedBuffer("ab\ncd")

    lines = [(line, fragment.text) for line, fragment in buffer.enumerate_lines()]

    assert lines == [(TextRange(0, 3), "ab\n"), (TextRange(3, 2), "cd")]


def test_longest_effective_range_spans_runs_sharing_value() -> None:
    item = ListItem.ordered(2)
    buffer = make_buffer(
        ("2", TextAttributes(list_item=item)),
        (".", TextAttributes(list_item=item, caret=True)),
        ("two", TextAttributes()),
    )

    value, found = buffer.longest_effective_range(0, AttributeKey.LIST)

    assert value == item
    assert found == TextRange(0, 2)


def test_update_attributes_keeps_list_runs_and_drops_decorations() -> None:
    marker = TextAttributes(list_item=ListItem.bullet())
    buffer = make_buffer(("•", marker), ("text", TextAttributes(underline=True)))

    buffer.update_attributes(TextAttributes(italic=True), buffer.range)

    assert buffer.attributes_at(0) == marker
    assert buffer.attributes_at(1) == TextAttributes(italic=True)


def test_remove_attributes_clears_only_named_keys() -> None:
    buffer = make_buffer(("ab", TextAttributes(bold=True, caret=True)))

    buffer.remove_attributes((AttributeKey.CARET,), buffer.range)

    assert buffer.attributes_at(0) == BOLD


def test_attribute_ranges_report_maximal_spans() -> None:
    text = AttributedText.from_segments(
        [("a", BOLD), ("b", TextAttributes(bold=True, italic=True)), ("c", TextAttributes())]
    )

    assert text.attribute_ranges(AttributeKey.BOLD) == [(TextRange(0, 2), True)]
    assert text.attribute_ranges(AttributeKey.ITALIC) == [(TextRange(1, 1), True)]


def test_lines_keep_terminators_without_trailing_empty_line() -> None:
    text = AttributedText("a\nb\n")

    assert [line.text for line in text.lines()] == ["a\n", "b\n"]


def test_character_at_outside_buffer_is_none() -> None:
    buffer = AttributedBuffer("a")

    assert buffer.character_at(0) == "a"
    assert buffer.character_at(1) is None
    assert buffer.character_at(-1) is None


def test_text_range_shifted_keeps_length() -> None:
    assert TextRange(1, 2).shifted(4) == TextRange(5, 2)
    assert TextRange.caret(3).shifted(-3) == TextRange.caret(0)
