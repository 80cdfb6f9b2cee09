"""Markdown rendering and HTML sanitization.

Every piece of markdown that ends up in the document (model responses and the
static form guide) goes through `MarkdownRenderer.render`, so there is exactly
one allow-list to audit.
"""

from __future__ import annotations

import html
import logging
import re
from functools import lru_cache
from typing import Any

import markdown
from bs4 import BeautifulSoup, Comment, Tag
from markdownify import ATX, MarkdownConverter


logger = logging.getLogger(__name__)


class MarkdownRenderer:
    """Convert markdown to HTML and strip everything not on the allow-list."""

    MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]

    # Tags removed together with their content
    DROP_TAGS = {
        "script",
        "style",
        "iframe",
        "frame",
        "frameset",
        "embed",
        "object",
        "applet",
        "noscript",
        "template",
        "form",
        "input",
        "button",
        "select",
        "textarea",
        "meta",
        "link",
        "base",
        "svg",
        "math",
    }

    # Tags kept as-is; anything else is unwrapped (its text survives)
    ALLOWED_TAGS = {
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "p",
        "br",
        "hr",
        "strong",
        "em",
        "b",
        "i",
        "del",
        "sup",
        "sub",
        "code",
        "pre",
        "blockquote",
        "ul",
        "ol",
        "li",
        "dl",
        "dt",
        "dd",
        "a",
        "img",
        "abbr",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
    }

    ALLOWED_ATTRS = {
        "a": {"href", "title"},
        "img": {"src", "alt", "title"},
        "abbr": {"title"},
        "code": {"class"},
        "th": {"align"},
        "td": {"align"},
    }

    URL_ATTRS = {"href", "src"}
    SAFE_URL_SCHEMES = {"http", "https", "mailto"}

    _CODE_CLASS = re.compile(r"^language-[\w+-]+$")
    _URL_NOISE = re.compile(r"[\x00-\x20\x7f]+")
    _URL_SCHEME = re.compile(r"^([a-z][a-z0-9+.\-]*):")

    def render(self, raw_markdown: str) -> str:
        """Render markdown to sanitized HTML."""
        converted = markdown.markdown(
            raw_markdown, extensions=self.MARKDOWN_EXTENSIONS
        )
        return self.sanitize(converted)

    def sanitize(self, raw_html: str) -> str:
        """Strip script-capable content from an HTML fragment."""
        try:
            soup = BeautifulSoup(raw_html, "html.parser")
        except Exception as e:
            logger.warning(f"Failed to parse rendered markdown: {e}")
            return f"<p>{html.escape(raw_html)}</p>"

        # Remove comments (conditional comments can carry markup)
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        for tag_name in self.DROP_TAGS:
            for tag in soup.find_all(tag_name):
                tag.decompose()

        for tag in soup.find_all(True):
            if tag.name not in self.ALLOWED_TAGS:
                tag.unwrap()
                continue
            self._clean_attributes(tag)
            # Drop images left without a safe src
            if tag.name == "img" and not tag.get("src"):
                tag.decompose()

        return str(soup)

    def _clean_attributes(self, tag: Tag) -> None:
        allowed = self.ALLOWED_ATTRS.get(tag.name, set())
        attrs_to_keep: dict[str, Any] = {}
        for attr, value in tag.attrs.items():
            attr_lower = attr.lower()
            if attr_lower not in allowed:
                continue
            if attr_lower in self.URL_ATTRS and not self._is_safe_url(value):
                continue
            if attr_lower == "class":
                value = [c for c in value if self._CODE_CLASS.match(c)]
                if not value:
                    continue
            attrs_to_keep[attr_lower] = value

        tag.attrs.clear()
        tag.attrs.update(attrs_to_keep)

    def _is_safe_url(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        # Browsers ignore control characters and whitespace inside schemes
        normalized = self._URL_NOISE.sub("", value).lower()
        match = self._URL_SCHEME.match(normalized)
        if match is None:
            # Relative URL or fragment
            return True
        return match.group(1) in self.SAFE_URL_SCHEMES


class ResponseMarkdownConverter(MarkdownConverter):
    """Markdown converter producing the same dialect the renderer reads."""

    def __init__(self, **options: Any) -> None:
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("wrap", False)
        super().__init__(**options)

    def convert(self, html: str) -> str:
        """Convert HTML to markdown and normalize whitespace."""
        raw_markdown = super().convert(html)
        return self._clean_markdown(raw_markdown)

    def _clean_markdown(self, markdown_text: str) -> str:
        result = markdown_text.replace("\r\n", "\n")
        # Collapse multiple blank lines to max 2
        result = re.sub(r"\n{3,}", "\n\n", result)
        lines = [line.rstrip() for line in result.split("\n")]
        return "\n".join(lines).strip()


@lru_cache
def get_renderer() -> MarkdownRenderer:
    return MarkdownRenderer()


def render_markdown(raw_markdown: str) -> str:
    """Render markdown through the shared sanitization pipeline."""
    return get_renderer().render(raw_markdown)


def html_to_markdown(html_fragment: str) -> str:
    """Turn rendered HTML back into markdown source."""
    return ResponseMarkdownConverter().convert(html_fragment)
