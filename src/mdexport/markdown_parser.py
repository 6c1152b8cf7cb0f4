"""Parse note markdown into a :class:`~mdexport.schemas.DocumentTree`."""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import mistune

from mdexport import mermaid
from mdexport.config import DEFAULT_MERMAID_THEME
from mdexport.exceptions import ParseError
from mdexport.preprocess import (
    convert_callouts,
    normalize_newlines,
    repair_empty_fences,
    strip_front_matter,
    strip_trailing_tags,
)
from mdexport.schemas import (
    Block,
    Blockquote,
    Bold,
    CodeBlock,
    DiagramLink,
    DocumentTree,
    ExportSettings,
    Heading,
    HorizontalRule,
    Hyperlink,
    Image,
    Inline,
    InlineCode,
    Italic,
    ListBlock,
    ListItem,
    Paragraph,
    PlainText,
    Strikethrough,
    Table,
)

logger = logging.getLogger(__name__)

Token = dict[str, Any]

DIAGRAM_LANGUAGE = "mermaid"

_FENCE_OPEN_RE = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_FENCE_CLOSE_RE = re.compile(r"^[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*$")
_WIKI_LINK_PATTERN = r"\[\[(?P<wiki_target>[^\]|\n]+)(?:\|(?P<wiki_label>[^\]\n]+))?\]\]"


def _parse_wiki_link(inline: Any, m: re.Match[str], state: Any) -> int:
    text = m.group("wiki_label") or m.group("wiki_target")
    state.append_token({"type": "text", "raw": text.strip()})
    return m.end()


def wiki_links_as_text(md: mistune.Markdown) -> None:
    """mistune plugin: render ``[[target|label]]`` as its label (or target)."""
    md.inline.register("wiki_link", _WIKI_LINK_PATTERN, _parse_wiki_link, before="link")


@lru_cache(maxsize=2)
def _markdown(remove_wiki_links: bool) -> mistune.Markdown:
    plugins: list[Any] = ["table", "strikethrough"]
    if remove_wiki_links:
        plugins.append(wiki_links_as_text)
    return mistune.create_markdown(renderer=None, plugins=plugins)


def parse_markdown(
    text: str | None,
    settings: ExportSettings | None = None,
    *,
    strict: bool = False,
) -> DocumentTree:
    """Convert note markdown into a document tree.

    Empty or whitespace-only input gives an empty tree. A block that fails to
    convert is logged and skipped; if tokenizing itself fails the result is an
    empty tree, or a :class:`ParseError` when ``strict`` is set.
    """
    if not text or not isinstance(text, str) or not text.strip():
        return DocumentTree()
    opts = settings or ExportSettings()
    try:
        builder = _TreeBuilder(theme=opts.mermaid_theme)
        prepared = builder.extract_diagrams(preprocess_markdown(text))
        tokens, _ = _markdown(opts.remove_obsidian_links).parse(prepared)
        return DocumentTree(blocks=builder.convert_blocks(tokens))
    except Exception as exc:
        if strict:
            raise ParseError(f"Could not parse markdown: {exc}") from exc
        logger.exception("Markdown parsing failed; exporting an empty document")
        return DocumentTree()


def parse_inline(text: str, settings: ExportSettings | None = None) -> tuple[Inline, ...]:
    """Lex a fragment of running text into inline nodes."""
    if not text:
        return ()
    opts = settings or ExportSettings()
    tokens, _ = _markdown(opts.remove_obsidian_links).parse(text)
    if len(tokens) == 1 and tokens[0].get("type") == "paragraph":
        return tuple(_TreeBuilder().convert_inlines(tokens[0].get("children") or []))
    return (PlainText(text=text),)


def preprocess_markdown(text: str) -> str:
    """Apply the text passes that run before diagram extraction."""
    text = normalize_newlines(text)
    text = strip_front_matter(text)
    text = convert_callouts(text)
    text = repair_empty_fences(text)
    return strip_trailing_tags(text)


@dataclass
class _TreeBuilder:
    """Per-parse state: diagram placeholders and token conversion."""

    theme: str = DEFAULT_MERMAID_THEME
    diagrams: dict[str, DiagramLink] = field(default_factory=dict)
    nonce: str = field(default_factory=lambda: uuid.uuid4().hex)

    # -- diagram extraction -------------------------------------------------
    def extract_diagrams(self, text: str) -> str:
        """Replace top-level mermaid fences with placeholder paragraphs.

        Fences nested in another fence are left alone, so a code sample that
        shows mermaid syntax keeps its exact text.
        """
        while self.nonce in text:
            self.nonce = uuid.uuid4().hex

        lines = text.split("\n")
        out: list[str] = []
        index = 0
        while index < len(lines):
            opening = _FENCE_OPEN_RE.match(lines[index])
            if opening is None:
                out.append(lines[index])
                index += 1
                continue
            fence = opening.group("fence")
            end = _closing_fence(lines, index + 1, fence)
            if end is None:
                out.extend(lines[index:])
                break
            link = None
            if fence[0] == "`" and _fence_language(opening.group("info")) == DIAGRAM_LANGUAGE:
                link = self.diagram("".join(line + "\n" for line in lines[index + 1 : end]))
            if link is None:
                out.extend(lines[index : end + 1])
            else:
                placeholder = f"MDEXPORTDIAGRAM{self.nonce}N{len(self.diagrams)}"
                self.diagrams[placeholder] = link
                out.extend(["", placeholder, ""])
            index = end + 1
        return "\n".join(out)

    def diagram(self, code: str) -> DiagramLink | None:
        """Build the link for one diagram body, ``None`` if that fails."""
        try:
            return DiagramLink(
                kind_label=mermaid.humanize(mermaid.classify(code)),
                source_code=code.strip(),
                url=mermaid.encode(code, self.theme),
            )
        except Exception:
            logger.exception("Keeping mermaid block as plain code")
            return None

    # -- blocks -------------------------------------------------------------
    def convert_blocks(self, tokens: list[Token]) -> list[Block]:
        blocks: list[Block] = []
        for token in tokens:
            try:
                block = self._convert_block(token)
            except Exception:
                logger.exception("Skipping %r token that failed to convert", token.get("type"))
                continue
            if block is not None:
                blocks.append(block)
        return blocks

    def _convert_block(self, token: Token) -> Block | None:
        kind = token.get("type", "")
        attrs = token.get("attrs") or {}

        if kind == "heading":
            return Heading(
                level=attrs.get("level", 1),
                content=self.convert_inlines(token.get("children") or []),
            )

        if kind in {"paragraph", "block_text"}:
            return self._convert_paragraph(token)

        if kind == "block_code":
            info = (attrs.get("info") or "").strip()
            content = token.get("raw", "")
            language = _fence_language(info)
            if language == DIAGRAM_LANGUAGE:
                # Fences the text pass cannot see, e.g. inside blockquotes.
                link = self.diagram(content)
                if link is not None:
                    return link
            if content.endswith("\n"):
                content = content[:-1]
            return CodeBlock(language=language, content=content)

        if kind == "list":
            return self._convert_list(token)

        if kind == "table":
            return self._convert_table(token)

        if kind == "block_quote":
            return Blockquote(content=self.convert_blocks(token.get("children") or []))

        if kind == "thematic_break":
            return HorizontalRule()

        if kind == "blank_line":
            return None

        text = token.get("raw") or token.get("text")
        if isinstance(text, str) and text.strip():
            logger.debug("Treating %r token as plain paragraph", kind)
            return Paragraph(content=(PlainText(text=text.strip()),))
        logger.debug("Dropping %r token without text", kind)
        return None

    def _convert_paragraph(self, token: Token) -> Block:
        children = token.get("children") or []
        diagram = self.diagrams.get(_plain_text(children).strip())
        if diagram is not None:
            return diagram
        if len(children) == 1 and children[0].get("type") == "image":
            image = children[0]
            return Image(
                alt_text=_plain_text(image.get("children") or []),
                url=(image.get("attrs") or {}).get("url", ""),
            )
        return Paragraph(content=self.convert_inlines(children))

    def _convert_list(self, token: Token) -> ListBlock:
        attrs = token.get("attrs") or {}
        items = [
            self._convert_list_item(child)
            for child in token.get("children") or []
            if child.get("type") == "list_item"
        ]
        return ListBlock(ordered=bool(attrs.get("ordered")), items=items)

    def _convert_list_item(self, token: Token) -> ListItem:
        content: list[Inline] = []
        nested: ListBlock | None = None
        for child in token.get("children") or []:
            kind = child.get("type")
            if kind == "list":
                if nested is None:
                    nested = self._convert_list(child)
                else:
                    logger.debug("Ignoring second nested list in one item")
            elif kind in {"block_text", "paragraph"}:
                if content:
                    content.append(PlainText(text="\n"))
                content.extend(self.convert_inlines(child.get("children") or []))
            elif kind != "blank_line":
                text = child.get("raw") or child.get("text")
                if isinstance(text, str) and text.strip():
                    if content:
                        content.append(PlainText(text="\n"))
                    content.append(PlainText(text=text.strip()))
        return ListItem(content=_merge_text(content), children=nested)

    def _convert_table(self, token: Token) -> Table:
        headers: list[tuple[Inline, ...]] = []
        rows: list[tuple[tuple[Inline, ...], ...]] = []
        for part in token.get("children") or []:
            kind = part.get("type")
            if kind == "table_head":
                headers = [self._cell(cell) for cell in part.get("children") or []]
            elif kind == "table_body":
                for row in part.get("children") or []:
                    rows.append(tuple(self._cell(cell) for cell in row.get("children") or []))
        width = len(headers)
        fitted = [row[:width] + ((),) * (width - len(row)) for row in rows]
        return Table(headers=headers, rows=fitted)

    def _cell(self, token: Token) -> tuple[Inline, ...]:
        return tuple(self.convert_inlines(token.get("children") or []))

    # -- inlines ------------------------------------------------------------
    def convert_inlines(self, tokens: list[Token]) -> list[Inline]:
        nodes: list[Inline] = []
        for token in tokens:
            node = self._convert_inline(token)
            if node is not None:
                nodes.append(node)
        return _merge_text(nodes)

    def _convert_inline(self, token: Token) -> Inline | None:
        kind = token.get("type", "")
        children = token.get("children") or []

        if kind == "text":
            return PlainText(text=token.get("raw", ""))
        if kind == "strong":
            return Bold(content=self.convert_inlines(children))
        if kind == "emphasis":
            return Italic(content=self.convert_inlines(children))
        if kind == "strikethrough":
            return Strikethrough(content=self.convert_inlines(children))
        if kind == "codespan":
            return InlineCode(text=token.get("raw", ""))
        if kind == "link":
            url = (token.get("attrs") or {}).get("url", "")
            label = self.convert_inlines(children) or [PlainText(text=url)]
            return Hyperlink(text=label, url=url)
        if kind == "image":
            alt = _plain_text(children)
            return PlainText(text=alt) if alt else None
        if kind in {"softbreak", "linebreak"}:
            return PlainText(text="\n")

        raw = token.get("raw") or token.get("text")
        if isinstance(raw, str) and raw:
            return PlainText(text=raw)
        return None


def _fence_language(info: str) -> str | None:
    words = info.split()
    return words[0] if words else None


def _closing_fence(lines: list[str], start: int, fence: str) -> int | None:
    """Index of the line closing ``fence``, searching from ``start``."""
    for index in range(start, len(lines)):
        match = _FENCE_CLOSE_RE.match(lines[index])
        if match and match.group("fence")[0] == fence[0] and len(match.group("fence")) >= len(fence):
            return index
    return None


def _plain_text(tokens: list[Token]) -> str:
    parts: list[str] = []
    for token in tokens:
        if token.get("type") == "text":
            parts.append(token.get("raw", ""))
        elif token.get("children"):
            parts.append(_plain_text(token["children"]))
    return "".join(parts)


def _merge_text(nodes: list[Inline]) -> list[Inline]:
    merged: list[Inline] = []
    for node in nodes:
        if merged and isinstance(node, PlainText) and isinstance(merged[-1], PlainText):
            merged[-1] = PlainText(text=merged[-1].text + node.text)
        else:
            merged.append(node)
    return merged
