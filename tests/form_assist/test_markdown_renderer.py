"""Unit tests for the markdown sanitization pipeline."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from formhelper.services.form_assist.form_guide import SIGN_UP_FORM_GUIDE
from formhelper.services.form_assist.markdown_renderer import (
    MarkdownRenderer,
    ResponseMarkdownConverter,
    get_renderer,
    html_to_markdown,
    render_markdown,
)


HOSTILE_INPUTS = [
    "Hello\n\n<script>alert('x')</script>",
    '<img src="x.png" onerror="alert(1)">',
    "[click me](javascript:alert(1))",
    '<a href="java&#x09;script:alert(1)">tab obfuscated</a>',
    '<a href=" JaVaScRiPt:alert(1)">case obfuscated</a>',
    '<p onclick="steal()">Click <b onmouseover="x()">here</b></p>',
    "<iframe src=\"https://evil.example\"></iframe>\n\nafter",
    "<form><input onfocus=alert(1) autofocus></form>",
    "<svg><script>alert(1)</script></svg>",
    "## Problem\n\n<scr<script>ipt>alert(1)</script>",
]


def assert_no_executable_content(html: str) -> None:
    soup = BeautifulSoup(html, "html.parser")
    assert soup.find("script") is None
    assert soup.find("iframe") is None
    for tag in soup.find_all(True):
        for attr, value in tag.attrs.items():
            assert not attr.lower().startswith("on"), (tag, attr)
            if attr in ("href", "src"):
                compact = "".join(value.split()).lower()
                assert not compact.startswith("javascript:"), (tag, value)


class TestMarkdownRenderer:
    def test_renders_basic_markdown(self):
        result = render_markdown("# Title\n\nSome **bold** text")

        assert "<h1>Title</h1>" in result
        assert "<strong>bold</strong>" in result

    def test_renders_response_sections(self):
        raw = (
            "# Field: email\n\n## Problem\nMissing domain\n\n"
            "## Solution\n1. Add a domain\n\n## Recommended Input\n`bad@example.com`"
        )
        soup = BeautifulSoup(render_markdown(raw), "html.parser")

        headings = [h.get_text() for h in soup.find_all("h2")]
        assert headings == ["Problem", "Solution", "Recommended Input"]
        assert soup.find("code").get_text() == "bad@example.com"

    @pytest.mark.parametrize("raw", HOSTILE_INPUTS)
    def test_strips_script_capable_content(self, raw):
        assert_no_executable_content(render_markdown(raw))

    def test_script_content_is_removed_not_unwrapped(self):
        result = render_markdown("Hello\n\n<script>alert('x')</script>")

        assert "alert" not in result
        assert "Hello" in result

    def test_inline_handler_dropped_but_image_kept(self):
        soup = BeautifulSoup(
            render_markdown('<img src="x.png" onerror="alert(1)">'), "html.parser"
        )

        img = soup.find("img")
        assert img is not None
        assert img.attrs == {"src": "x.png"}

    def test_javascript_link_loses_href_keeps_text(self):
        soup = BeautifulSoup(
            render_markdown("[click me](javascript:alert(1))"), "html.parser"
        )

        link = soup.find("a")
        assert link is not None
        assert "href" not in link.attrs
        assert link.get_text() == "click me"

    @pytest.mark.parametrize(
        "raw",
        [
            "![x](javascript:alert(1))",
            '<img alt="x" src="data:text/html;base64,PHNjcmlwdD4=">',
            '<img alt="x">',
        ],
    )
    def test_image_without_safe_src_is_dropped(self, raw):
        result = render_markdown(raw)

        assert "<img" not in result
        round_trip = render_markdown(html_to_markdown(result))
        assert "<img" not in round_trip
        assert 'src=""' not in round_trip

    @pytest.mark.parametrize(
        "href",
        ["https://example.com/help", "mailto:support@example.com", "/docs", "#email"],
    )
    def test_safe_links_are_kept(self, href):
        soup = BeautifulSoup(render_markdown(f"[help]({href})"), "html.parser")

        assert soup.find("a")["href"] == href

    def test_unknown_tags_are_unwrapped(self):
        result = render_markdown("<div><span>kept text</span></div>")

        assert "kept text" in result
        assert "<div" not in result
        assert "<span" not in result

    def test_presentation_attributes_are_removed(self):
        result = MarkdownRenderer().sanitize(
            '<p style="color:red" class="x" id="y">hi</p>'
        )

        assert result == "<p>hi</p>"

    def test_code_language_class_is_kept(self):
        soup = BeautifulSoup(
            render_markdown("```python\nprint(1)\n```"), "html.parser"
        )

        assert soup.find("code")["class"] == ["language-python"]

    def test_arbitrary_code_class_is_dropped(self):
        result = MarkdownRenderer().sanitize('<code class="evil">x</code>')

        assert result == "<code>x</code>"

    def test_comments_are_removed(self):
        result = render_markdown("<!-- hidden note -->\n\nvisible")

        assert "hidden note" not in result
        assert "visible" in result

    def test_tables_survive(self):
        soup = BeautifulSoup(
            render_markdown("| a | b |\n|---|---|\n| 1 | 2 |"), "html.parser"
        )

        assert soup.find("table") is not None
        assert [td.get_text() for td in soup.find_all("td")] == ["1", "2"]

    def test_render_is_deterministic(self):
        raw = "## Problem\n\n<b onclick=x()>bad</b> value `foo`"

        assert render_markdown(raw) == render_markdown(raw)

    def test_empty_input(self):
        assert render_markdown("") == ""

    def test_shared_renderer_is_cached(self):
        assert get_renderer() is get_renderer()

    def test_form_guide_goes_through_same_pipeline(self):
        result = render_markdown(SIGN_UP_FORM_GUIDE)

        assert "<h3>Form Filling Guide</h3>" in result
        assert "<strong>Username</strong>" in result


class TestHtmlToMarkdown:
    def test_converts_headings_and_emphasis(self):
        result = html_to_markdown("<h2>Problem</h2><p>Bad <strong>email</strong></p>")

        assert "## Problem" in result
        assert "**email**" in result

    def test_collapses_blank_lines(self):
        result = ResponseMarkdownConverter()._clean_markdown("a\n\n\n\n\nb  \n")

        assert result == "a\n\nb"

    @pytest.mark.parametrize("raw", HOSTILE_INPUTS)
    def test_round_trip_stays_safe(self, raw):
        once = render_markdown(raw)
        twice = render_markdown(html_to_markdown(once))

        assert_no_executable_content(once)
        assert_no_executable_content(twice)
