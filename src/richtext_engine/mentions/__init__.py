"""Mention tokens: mentionable items and the trigger tracker."""

from .item import MentionableItem, MentionItem, mention_span
from .tracker import (
    HASHTAG_STARTED,
    MENTION_ITEM_REMOVED,
    MENTION_SEARCH,
    MENTION_STARTED,
    MENTION_SYMBOL_REMOVED,
    MentionState,
    MentionTracker,
)

__all__ = [
    "HASHTAG_STARTED",
    "MENTION_ITEM_REMOVED",
    "MENTION_SEARCH",
    "MENTION_STARTED",
    "MENTION_SYMBOL_REMOVED",
    "MentionItem",
    "MentionState",
    "MentionTracker",
    "MentionableItem",
    "mention_span",
]
