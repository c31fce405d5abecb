"""Markdown-to-HTML rendering adapter.

Provides the rich-text renderer the core formatter is built with. Titles and
comment bodies come from GitHub users, so raw HTML in the input is escaped
rather than passed through.
"""

from __future__ import annotations

import markdown


def create_markdown_converter() -> markdown.Markdown:
    """Create a configured markdown converter instance with raw HTML disabled."""

    md = markdown.Markdown(extensions=["fenced_code", "sane_lists"])
    md.preprocessors.deregister("html_block")
    md.inlinePatterns.deregister("html")
    return md


def render_markdown(text: str) -> str:
    """Render notification markdown to HTML."""

    # Markdown instances keep per-document state; a fresh one per call is pure.
    return create_markdown_converter().convert(text)
