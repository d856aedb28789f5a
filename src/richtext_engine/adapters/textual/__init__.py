"""Textual host for the rich-text engine."""

from .controller import TextualEditorAdapter, TextualUIHooks, render_document, rich_style

__all__ = ["TextualEditorAdapter", "TextualUIHooks", "render_document", "rich_style"]
