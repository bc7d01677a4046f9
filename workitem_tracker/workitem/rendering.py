"""
Markup content for work item descriptions.

A description is stored as MarkupContent (raw content plus the markup language
it is written in) and rendered to HTML only when projected to the wire.
"""

from __future__ import annotations

import html
from typing import Any, Dict, Optional

from markdown_it import MarkdownIt
from pydantic import BaseModel, ConfigDict, Field

from .enums import Markup

CONTENT_KEY = "content"
MARKUP_KEY = "markup"

# Raw HTML in markdown sources is escaped, not passed through.
_markdown = MarkdownIt("commonmark", {"html": False})


class MarkupContent(BaseModel):
    """Content of a rich text field together with its markup language."""

    model_config = ConfigDict(extra="forbid")

    content: str = Field("", description="Raw content as written by the user")
    markup: str = Field(
        Markup.PLAIN_TEXT.value, description="Markup language of the content"
    )

    @classmethod
    def from_value(cls, value: Any) -> Optional["MarkupContent"]:
        """Build MarkupContent from a stored or submitted value.

        Accepts an existing MarkupContent, a legacy plain string (treated as
        PlainText) or a ``{"content": ..., "markup": ...}`` mapping. Returns
        None for anything else, including None.
        """
        if isinstance(value, MarkupContent):
            return value.model_copy()
        if isinstance(value, str):
            return cls(content=value, markup=Markup.PLAIN_TEXT.value)
        if isinstance(value, dict):
            content = value.get(CONTENT_KEY) or ""
            markup = value.get(MARKUP_KEY) or Markup.PLAIN_TEXT.value
            return cls(content=str(content), markup=str(markup))
        return None

    def to_map(self) -> Dict[str, str]:
        return {CONTENT_KEY: self.content, MARKUP_KEY: self.markup}

    def render(self) -> str:
        return render_markup_to_html(self.content, self.markup)


def render_markup_to_html(content: str, markup: str) -> str:
    """Render ``content`` written in ``markup`` to HTML.

    Unknown markups fall back to escaped plain text.
    """
    if markup == Markup.MARKDOWN.value:
        return _markdown.render(content)
    return html.escape(content)
