"""Tests for the HTML page and clipboard fragment renderers."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from mdexport.markdown_parser import parse_markdown
from mdexport.renderers import ClipboardRenderer, HtmlRenderer
from mdexport.renderers.html import plain_text
from mdexport.schemas import (
    Blockquote,
    Bold,
    CodeBlock,
    DiagramLink,
    DocumentTree,
    Heading,
    Hyperlink,
    Image,
    InlineCode,
    Italic,
    ListBlock,
    ListItem,
    Paragraph,
    PlainText,
    Table,
)

RENDERERS = [HtmlRenderer, ClipboardRenderer]


def _soup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "lxml")


def _tree(*blocks) -> DocumentTree:
    return DocumentTree(blocks=blocks)


def _nested_list() -> ListBlock:
    third = ListBlock(items=[ListItem(content=[PlainText(text="three")])])
    second = ListBlock(items=[ListItem(content=[PlainText(text="two")], children=third)])
    return ListBlock(items=[ListItem(content=[PlainText(text="one")], children=second)])


class TestHtmlDocument:
    """Tests specific to the standalone page."""

    def test_full_document_with_stylesheet(self, make_settings) -> None:
        """Page has a doctype and a stylesheet using the code settings."""
        renderer = HtmlRenderer(make_settings(code_block_font="Menlo", code_block_background="#101010"))
        output = renderer.render(_tree(Paragraph(content=[PlainText(text="hi")])))
        assert output.startswith("<!DOCTYPE html>")
        style = _soup(output).find("style").get_text()
        assert "Menlo" in style
        assert "#101010" in style

    def test_language_label_div(self, settings) -> None:
        """Language label is a labelled div before the code."""
        output = HtmlRenderer(settings).render(_tree(CodeBlock(language="python", content="x = 1")))
        label = _soup(output).find("div", class_="code-language-label")
        assert label.get_text() == "python"

    def test_language_label_disabled(self, make_settings) -> None:
        """No label when the setting is off."""
        renderer = HtmlRenderer(make_settings(include_language_label=False))
        output = renderer.render(_tree(CodeBlock(language="python", content="x = 1")))
        assert _soup(output).find("div", class_="code-language-label") is None

    def test_diagram_link(self, settings) -> None:
        """Diagram becomes a linked paragraph with the kind suffix."""
        block = DiagramLink(kind_label="Flowchart", source_code="graph TD", url="https://mermaid.live/edit#pako:abc")
        output = HtmlRenderer(settings).render(_tree(block))
        link = _soup(output).select_one("p.mermaid-link a")
        assert link["href"] == "https://mermaid.live/edit#pako:abc"
        assert link.get_text() == "📊 View Diagram (Flowchart)"

    def test_diagram_link_without_type(self, make_settings) -> None:
        """Kind suffix is omitted when disabled."""
        block = DiagramLink(kind_label="Flowchart", source_code="graph TD", url="u")
        output = HtmlRenderer(make_settings(include_mermaid_type=False, mermaid_link_text="Open")).render(_tree(block))
        assert _soup(output).select_one("p.mermaid-link a").get_text() == "Open"

    def test_escapes_text(self, settings) -> None:
        """Markup characters in text are escaped."""
        output = HtmlRenderer(settings).render(_tree(Paragraph(content=[PlainText(text="<b>&</b>")])))
        assert "&lt;b&gt;&amp;&lt;/b&gt;" in output
        assert _soup(output).find("b") is None


class TestClipboardFragment:
    """Tests specific to the clipboard fragment."""

    def test_bare_fragment(self, settings) -> None:
        """Fragment has no document wrapper or stylesheet."""
        output = ClipboardRenderer(settings).render(_tree(Paragraph(content=[PlainText(text="hi")])))
        assert "<!DOCTYPE" not in output
        assert "<style" not in output
        assert output.startswith("<p>")

    def test_inline_code_styles(self, make_settings) -> None:
        """Code blocks carry font and background inline."""
        renderer = ClipboardRenderer(make_settings(code_block_font="Menlo", code_block_background="#eeeeee"))
        output = renderer.render(_tree(CodeBlock(language="sh", content="ls")))
        pre = _soup(output).find("pre")
        assert "Menlo" in pre["style"]
        assert "#eeeeee" in pre["style"]

    def test_language_label_bold_paragraph(self, settings) -> None:
        """Language label is a bold paragraph."""
        output = ClipboardRenderer(settings).render(_tree(CodeBlock(language="sh", content="ls")))
        label = _soup(output).find("p")
        assert label.get_text() == "sh"
        assert "font-weight: bold" in label["style"]

    def test_header_cells_shaded(self, settings) -> None:
        """Header cells carry the grey shading inline."""
        table = Table(headers=[[PlainText(text="A")]], rows=[[[PlainText(text="1")]]])
        output = ClipboardRenderer(settings).render(_tree(table))
        assert "#d3d3d3" in _soup(output).find("th")["style"]

    def test_inline_code_font(self, settings) -> None:
        """Inline code uses the configured font."""
        output = ClipboardRenderer(settings).render(_tree(Paragraph(content=[InlineCode(text="x")])))
        assert "Consolas" in _soup(output).find("code")["style"]

    def test_plain_text_alternative(self, settings) -> None:
        """Plain text flavour keeps one line per block."""
        tree = parse_markdown("# Title\n\nBody **bold**\n\n- item")
        output = ClipboardRenderer(settings).render(tree)
        assert plain_text(output) == "Title\nBody bold\nitem"


@pytest.mark.parametrize("renderer_cls", RENDERERS)
class TestSharedRules:
    """Rules every HTML backend follows."""

    def test_bold_italic_nesting(self, renderer_cls, settings) -> None:
        """Bold(Italic(x)) carries both styles on x."""
        tree = _tree(Paragraph(content=[Bold(content=[Italic(content=[PlainText(text="x")])])]))
        soup = _soup(renderer_cls(settings).render(tree))
        text = soup.find(string="x")
        parents = {parent.name for parent in text.parents}
        assert {"strong", "em"} <= parents

    def test_background_without_hash(self, renderer_cls, make_settings) -> None:
        """A "#"-less background still yields a valid CSS colour."""
        renderer = renderer_cls(make_settings(code_block_background="eeeeee"))
        output = renderer.render(_tree(CodeBlock(language="sh", content="ls")))
        assert "#eeeeee" in output
        assert ": eeeeee" not in output

    def test_heading_levels(self, renderer_cls, settings) -> None:
        """Headings map to h1..h6."""
        tree = _tree(*(Heading(level=level, content=[PlainText(text=f"H{level}")]) for level in range(1, 7)))
        soup = _soup(renderer_cls(settings).render(tree))
        for level in range(1, 7):
            assert soup.find(f"h{level}").get_text() == f"H{level}"

    def test_code_lines_preserved(self, renderer_cls, settings) -> None:
        """Every code line, blank ones included, survives."""
        content = "a\n\n  b\n"
        soup = _soup(renderer_cls(settings).render(_tree(CodeBlock(content=content))))
        assert soup.find("pre").get_text() == content

    def test_three_level_list(self, renderer_cls, settings) -> None:
        """Nested lists keep three levels with distinct markers."""
        soup = _soup(renderer_cls(settings).render(_tree(_nested_list())))
        lists = soup.find_all("ul")
        assert len(lists) == 3
        markers = [ul["style"] for ul in lists]
        assert markers == [
            "list-style-type: disc;",
            "list-style-type: circle;",
            "list-style-type: square;",
        ]

    def test_ordered_flag_per_list(self, renderer_cls, settings) -> None:
        """A nested list does not inherit ordering."""
        inner = ListBlock(items=[ListItem(content=[PlainText(text="b")])])
        outer = ListBlock(ordered=True, items=[ListItem(content=[PlainText(text="a")], children=inner)])
        soup = _soup(renderer_cls(settings).render(_tree(outer)))
        assert soup.find("ol").find("ul") is not None

    def test_table_cell_counts(self, renderer_cls, settings) -> None:
        """2 header cells and 2 data cells."""
        table = Table(
            headers=[[PlainText(text="A")], [PlainText(text="B")]],
            rows=[[[PlainText(text="1")], [PlainText(text="2")]]],
        )
        soup = _soup(renderer_cls(settings).render(_tree(table)))
        assert len(soup.find_all("th")) == 2
        assert len(soup.find_all("td")) == 2

    def test_blockquote_recurses(self, renderer_cls, settings) -> None:
        """Blockquotes render their blocks, tables included."""
        table = Table(headers=[[PlainText(text="A")]], rows=[])
        quote = Blockquote(content=[Paragraph(content=[PlainText(text="q")]), table])
        soup = _soup(renderer_cls(settings).render(_tree(quote)))
        assert soup.find("blockquote").find("p").get_text() == "q"
        assert soup.find("blockquote").find("table") is not None

    def test_hyperlink_label(self, renderer_cls, settings) -> None:
        """Link labels render their inline content."""
        link = Hyperlink(text=[Bold(content=[PlainText(text="site")])], url="https://example.com")
        soup = _soup(renderer_cls(settings).render(_tree(Paragraph(content=[link]))))
        anchor = soup.find("a")
        assert anchor["href"] == "https://example.com"
        assert anchor.find("strong").get_text() == "site"

    def test_image_skip(self, renderer_cls, make_settings) -> None:
        """skip contributes no fragment."""
        renderer = renderer_cls(make_settings(image_handling="skip"))
        assert renderer.render_block(Image(alt_text="a", url="u.png")) == []

    def test_image_link(self, renderer_cls, make_settings) -> None:
        """link is one anchor labelled with the alt text."""
        renderer = renderer_cls(make_settings(image_handling="link"))
        fragments = renderer.render_block(Image(alt_text="chart", url="u.png"))
        assert len(fragments) == 1
        anchors = _soup(fragments[0]).find_all("a")
        assert [(a["href"], a.get_text()) for a in anchors] == [("u.png", "chart")]

    def test_image_link_fallback_label(self, renderer_cls, make_settings) -> None:
        """Empty alt text falls back to "Image"."""
        renderer = renderer_cls(make_settings(image_handling="link"))
        (fragment,) = renderer.render_block(Image(url="u.png"))
        assert _soup(fragment).find("a").get_text() == "Image"

    def test_image_embed(self, renderer_cls, settings) -> None:
        """embed is one img element pointing at the URL."""
        (fragment,) = renderer_cls(settings).render_block(Image(alt_text="a", url="u.png"))
        assert _soup(fragment).find("img")["src"] == "u.png"

    def test_failed_block_renders_marker(self, renderer_cls, settings) -> None:
        """A block that raises is replaced by an error paragraph."""
        renderer = renderer_cls(settings)
        tree = _tree(
            Heading(level=1, content=[PlainText(text="ok")]),
            Table(headers=[[PlainText(text="A")]], rows=[]),
        )
        with patch.object(renderer_cls, "table", side_effect=RuntimeError("boom")):
            output = renderer.render(tree)
        assert "[Error rendering table block]" in output
        assert _soup(output).find("h1").get_text() == "ok"

    def test_idempotent(self, renderer_cls, settings) -> None:
        """Rendering the same tree twice gives identical output."""
        tree = parse_markdown("# T\n\n- a\n  - b\n\n| x | y |\n| - | - |\n| 1 | 2 |\n\n> q")
        renderer = renderer_cls(settings)
        assert renderer.render(tree) == renderer.render(tree)
