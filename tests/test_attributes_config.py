import pytest

from richtext_engine.buffer import AttributeKey, ListItem, TextAttributes
from richtext_engine.config import EngineConfig
from richtext_engine.mentions import MentionItem


def test_merged_overlays_only_set_fields() -> None:
    base = TextAttributes(bold=True, foreground="red")

    merged = base.merged(TextAttributes(italic=True))

    assert merged == TextAttributes(bold=True, italic=True, foreground="red")
    assert base.merged(TextAttributes()) is base


def test_without_decorations_and_list_marker() -> None:
    item = ListItem.bullet()
    attributes = TextAttributes(
        bold=True, underline=True, strikethrough=True, list_item=item, kern=6.5, caret=True
    )

    assert attributes.without_decorations() == TextAttributes(
        bold=True, list_item=item, kern=6.5, caret=True
    )
    assert attributes.without_list_marker() == TextAttributes(
        bold=True, underline=True, strikethrough=True
    )


def test_has_and_value_by_key() -> None:
    mention = MentionItem(7, "Ada")
    attributes = TextAttributes(mention=mention)

    assert attributes.has(AttributeKey.MENTION)
    assert attributes.value(AttributeKey.MENTION) == mention
    assert not attributes.has(AttributeKey.BOLD)
    assert TextAttributes().is_plain


def test_from_mapping_parses_list_raw_values() -> None:
    attributes = TextAttributes.from_mapping({"bold": True, "list": "ordered(3)"})

    assert attributes == TextAttributes(bold=True, list_item=ListItem.ordered(3))


def test_from_mapping_drops_unresolvable_list_value() -> None:
    assert TextAttributes.from_mapping({"list": "ordered(?)"}) == TextAttributes()


def test_from_mapping_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        TextAttributes.from_mapping({"blink": True})


def test_config_defaults() -> None:
    config = EngineConfig()

    assert config.mention_symbol == "@"
    assert config.hashtag_symbol == "#"
    assert config.mention_color == "blue"
    assert config.strict_ranges is False


def test_config_from_env_reads_prefixed_variables() -> None:
    config = EngineConfig.from_env(
        {
            "RICHTEXT_ENGINE_MENTION_SYMBOL": "+",
            "RICHTEXT_ENGINE_MENTION_COLOR": "green",
            "RICHTEXT_ENGINE_STRICT_RANGES": "yes",
        }
    )

    assert config == EngineConfig(mention_symbol="+", mention_color="green", strict_ranges=True)


def test_config_rejects_multi_character_symbols() -> None:
    with pytest.raises(ValueError):
        EngineConfig(mention_symbol="@@")
