"""HTML backends: a standalone styled page and a bare clipboard fragment."""

from __future__ import annotations

import html
from typing import ClassVar

from bs4 import BeautifulSoup

from mdexport.renderers.base import PLAIN, InlineStyle, Renderer, code_lines
from mdexport.schemas import (
    Blockquote,
    CodeBlock,
    DiagramLink,
    DocumentTree,
    Heading,
    HorizontalRule,
    Hyperlink,
    Image,
    ListBlock,
    Paragraph,
    Table,
)

LIST_STYLE_TYPES = {
    False: ("disc", "circle", "square"),
    True: ("decimal", "lower-alpha", "lower-roman"),
}

BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr", "pre", "div", "blockquote"]

ERROR_STYLE = "color: #999; font-style: italic;"

_STYLESHEET = """
    body {{
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
      line-height: 1.6;
      max-width: 800px;
      margin: 0 auto;
      padding: 20px;
      color: #333;
    }}
    h1, h2, h3, h4, h5, h6 {{ margin-top: 24px; margin-bottom: 16px; font-weight: 600; line-height: 1.25; }}
    h1 {{ font-size: 2em; border-bottom: 1px solid #eaecef; padding-bottom: 0.3em; }}
    h2 {{ font-size: 1.5em; border-bottom: 1px solid #eaecef; padding-bottom: 0.3em; }}
    h3 {{ font-size: 1.25em; }}
    h4 {{ font-size: 1em; }}
    h5 {{ font-size: 0.875em; }}
    h6 {{ font-size: 0.85em; color: #6a737d; }}
    p {{ margin-top: 0; margin-bottom: 16px; }}
    a {{ color: #0366d6; text-decoration: none; }}
    a:hover {{ text-decoration: underline; }}
    code {{
      font-family: {font}, 'Courier New', monospace;
      background-color: rgba(27, 31, 35, 0.05);
      padding: 0.2em 0.4em;
      border-radius: 3px;
      font-size: 85%;
    }}
    pre {{
      font-family: {font}, 'Courier New', monospace;
      background-color: {background};
      padding: 16px;
      overflow: auto;
      border-radius: 6px;
      margin-bottom: 16px;
    }}
    pre code {{ background-color: transparent; padding: 0; font-size: 100%; }}
    .code-language-label {{ font-weight: bold; margin-bottom: 4px; font-size: 0.9em; }}
    blockquote {{ border-left: 4px solid #dfe2e5; padding-left: 16px; margin-left: 0; color: #6a737d; }}
    table {{ border-collapse: collapse; width: 100%; margin-bottom: 16px; }}
    table th, table td {{ border: 1px solid #dfe2e5; padding: 8px 13px; }}
    table th {{ background-color: #f6f8fa; font-weight: 600; }}
    table tr:nth-child(even) {{ background-color: #f6f8fa; }}
    ul, ol {{ margin-top: 0; margin-bottom: 16px; padding-left: 2em; }}
    li {{ margin-bottom: 4px; }}
    hr {{ height: 0.25em; padding: 0; margin: 24px 0; background-color: #e1e4e8; border: 0; }}
    img {{ max-width: 100%; height: auto; display: block; margin: 16px 0; }}
    .mermaid-link {{ margin: 16px 0; }}
"""


def escape(text: str) -> str:
    return html.escape(text, quote=True)


def list_style_type(ordered: bool, depth: int) -> str:
    styles = LIST_STYLE_TYPES[ordered]
    return styles[depth % len(styles)]


def plain_text(fragment: str) -> str:
    """Text-only alternative of an HTML fragment, one line per block."""
    soup = BeautifulSoup(fragment, "lxml")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_after("\n")
    lines = (line.rstrip() for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line.strip())


class HtmlRenderer(Renderer[str]):
    """Complete HTML document with an embedded stylesheet."""

    format_name = "html"
    extension = ".html"
    title: ClassVar[str] = "Exported Document"

    # Inline ``style`` attributes per element; the page relies on its stylesheet.
    element_styles: ClassVar[dict[str, str]] = {}

    def render(self, document: DocumentTree) -> str:
        body = "".join(self.render_blocks(document.blocks))
        return (
            "<!DOCTYPE html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '  <meta charset="utf-8">\n'
            '  <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
            f"  <title>{escape(self.title)}</title>\n"
            f"  <style>{self.stylesheet()}  </style>\n"
            "</head>\n"
            "<body>\n"
            f"{body}"
            "</body>\n"
            "</html>"
        )

    def stylesheet(self) -> str:
        return _STYLESHEET.format(
            font=self.settings.code_block_font,
            background=self.settings.code_block_background,
        )

    def _attr(self, element: str, extra: str = "") -> str:
        style = " ".join(part for part in (self.element_styles.get(element, ""), extra) if part)
        return f' style="{escape(style)}"' if style else ""

    def _inline(self, inlines, style: InlineStyle = PLAIN) -> str:
        parts: list[str] = []
        self.render_inlines(inlines, parts, style)
        return "".join(parts)

    # -- blocks -------------------------------------------------------------
    def heading(self, block: Heading) -> list[str]:
        tag = f"h{block.level}"
        return [f"<{tag}{self._attr(tag)}>{self._inline(block.content)}</{tag}>\n"]

    def paragraph(self, block: Paragraph) -> list[str]:
        return [f"<p{self._attr('p')}>{self._inline(block.content)}</p>\n"]

    def code(self, block: CodeBlock) -> list[str]:
        fragments: list[str] = []
        if self.show_language_label(block):
            fragments.append(self.language_label(block.language or ""))
        lines = "\n".join(escape(line) for line in code_lines(block.content))
        fragments.append(f"<pre{self.pre_attr()}><code>{lines}</code></pre>\n")
        return fragments

    def language_label(self, language: str) -> str:
        return f'<div class="code-language-label">{escape(language)}</div>\n'

    def pre_attr(self) -> str:
        return ""

    def diagram_link(self, block: DiagramLink) -> list[str]:
        text = escape(self.diagram_link_text(block))
        return [
            f'<p class="mermaid-link"{self._attr("mermaid-link")}>'
            f'<a href="{escape(block.url)}">{text}</a></p>\n'
        ]

    def list_block(self, block: ListBlock, depth: int) -> list[str]:
        tag = "ol" if block.ordered else "ul"
        marker = f"list-style-type: {list_style_type(block.ordered, depth)};"
        parts = [f"<{tag}{self._attr(tag, marker)}>\n"]
        for item in block.items:
            parts.append(f"<li>{self._inline(item.content)}")
            if item.children is not None:
                parts.append("\n")
                parts.extend(self.list_block(item.children, depth + 1))
            parts.append("</li>\n")
        parts.append(f"</{tag}>\n")
        return ["".join(parts)]

    def table(self, block: Table) -> list[str]:
        parts = [self.table_open(), "<thead>\n<tr>\n"]
        for cell in block.headers:
            parts.append(f"<th{self._attr('th')}>{self._inline(cell)}</th>\n")
        parts.append("</tr>\n</thead>\n<tbody>\n")
        for row in block.rows:
            parts.append("<tr>\n")
            for cell in row:
                parts.append(f"<td{self._attr('td')}>{self._inline(cell)}</td>\n")
            parts.append("</tr>\n")
        parts.append("</tbody>\n</table>\n")
        return ["".join(parts)]

    def table_open(self) -> str:
        return "<table>\n"

    def blockquote(self, block: Blockquote) -> list[str]:
        inner = "".join(self.render_blocks(block.content))
        return [f"<blockquote{self._attr('blockquote')}>\n{inner}</blockquote>\n"]

    def horizontal_rule(self, block: HorizontalRule) -> list[str]:
        return [f"<hr{self._attr('hr')}>\n"]

    def image_embed(self, block: Image) -> list[str]:
        return [f'<img src="{escape(block.url)}" alt="{escape(block.alt_text)}"{self._attr("img")}>\n']

    def image_link(self, block: Image, label: str) -> list[str]:
        return [f'<p{self._attr("p")}><a href="{escape(block.url)}">{escape(label)}</a></p>\n']

    def error_fragment(self, kind: str) -> str:
        return f'<p style="{ERROR_STYLE}">[Error rendering {escape(kind)} block]</p>\n'

    # -- inlines ------------------------------------------------------------
    @staticmethod
    def _wrap(markup: str, style: InlineStyle) -> str:
        if style.strike:
            markup = f"<del>{markup}</del>"
        if style.italic:
            markup = f"<em>{markup}</em>"
        if style.bold:
            markup = f"<strong>{markup}</strong>"
        return markup

    def emit_text(self, target: list[str], text: str, style: InlineStyle) -> None:
        target.append(self._wrap(escape(text), style))

    def emit_code(self, target: list[str], text: str, style: InlineStyle) -> None:
        target.append(self._wrap(f"<code{self.code_attr()}>{escape(text)}</code>", style))

    def code_attr(self) -> str:
        return ""

    def emit_link(self, target: list[str], node: Hyperlink, style: InlineStyle) -> None:
        target.append(f'<a href="{escape(node.url)}">{self._inline(node.text, style)}</a>')


class ClipboardRenderer(HtmlRenderer):
    """Bare HTML fragment for rich paste; every style is inline."""

    format_name = "clipboard"
    extension = None

    element_styles = {
        "blockquote": "border-left: 3px solid #999; padding-left: 15px; margin-left: 0;",
        "th": "background-color: #d3d3d3; padding: 8px;",
        "td": "padding: 8px;",
        "hr": "border: 0; border-top: 1px solid #999;",
        "img": "max-width: 100%;",
    }

    def render(self, document: DocumentTree) -> str:
        return "".join(self.render_blocks(document.blocks))

    def language_label(self, language: str) -> str:
        return f'<p style="font-weight: bold; margin-bottom: 4px;">{escape(language)}</p>\n'

    def pre_attr(self) -> str:
        style = (
            f"font-family: {self.settings.code_block_font}, monospace; "
            f"background-color: {self.settings.code_block_background}; "
            "padding: 10px; white-space: pre;"
        )
        return f' style="{escape(style)}"'

    def code_attr(self) -> str:
        style = f"font-family: {self.settings.code_block_font}, monospace;"
        return f' style="{escape(style)}"'

    def table_open(self) -> str:
        return '<table border="1" style="border-collapse: collapse; width: 100%;">\n'

    def plain_text(self, fragment: str) -> str:
        return plain_text(fragment)
