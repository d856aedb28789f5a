"""HTML codec: grouped list markup with mention spans, both directions."""

from .decoder import DocumentBuilder, Resolver, from_html, parse_mention_ids, retag_mentions
from .encoder import ParsableGroup, encode_inline, encode_line, to_html

__all__ = [
    "DocumentBuilder",
    "ParsableGroup",
    "Resolver",
    "encode_inline",
    "encode_line",
    "from_html",
    "parse_mention_ids",
    "retag_mentions",
    "to_html",
]
