"""Tree-walking contract shared by every output backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Generic, Iterable, TypeVar

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
    Paragraph,
    PlainText,
    Strikethrough,
    Table,
)

logger = logging.getLogger(__name__)

F = TypeVar("F")

IMAGE_LINK_FALLBACK = "Image"
IMAGE_ALT_FALLBACK = "Untitled"


@dataclass(frozen=True)
class InlineStyle:
    """Formatting flags accumulated while descending through inline nodes."""

    bold: bool = False
    italic: bool = False
    strike: bool = False


PLAIN = InlineStyle()


def block_kind(block: Any) -> str:
    return getattr(block, "type", None) or type(block).__name__


def code_lines(content: str) -> list[str]:
    """Split code on line boundaries; an empty block is one blank line."""
    return content.split("\n")


class Renderer(ABC, Generic[F]):
    """Render a :class:`DocumentTree` into one target grammar.

    Subclasses implement one method per block variant returning a list of
    target fragments, plus the leaf emitters used by :meth:`render_inlines`.
    :meth:`render_block` guards every block so a failure produces a visible
    error fragment instead of aborting the document.
    """

    format_name: ClassVar[str]
    extension: ClassVar[str | None] = None

    def __init__(self, settings: ExportSettings | None = None) -> None:
        self.settings = settings or ExportSettings()

    @abstractmethod
    def render(self, document: DocumentTree) -> bytes | str:
        """Produce the complete output for ``document``."""

    # -- blocks -------------------------------------------------------------
    def render_blocks(self, blocks: Iterable[Block]) -> list[F]:
        fragments: list[F] = []
        for block in blocks:
            fragments.extend(self.render_block(block))
        return fragments

    def render_block(self, block: Block) -> list[F]:
        checkpoint = self._checkpoint()
        try:
            return self._dispatch(block)
        except Exception:
            kind = block_kind(block)
            logger.exception("Error rendering %s block", kind)
            self._rollback(checkpoint)
            return [self.error_fragment(kind)]

    def _dispatch(self, block: Block) -> list[F]:
        if isinstance(block, Heading):
            return self.heading(block)
        if isinstance(block, Paragraph):
            return self.paragraph(block)
        if isinstance(block, CodeBlock):
            return self.code(block)
        if isinstance(block, DiagramLink):
            return self.diagram_link(block)
        if isinstance(block, ListBlock):
            return self.list_block(block, depth=0)
        if isinstance(block, Table):
            return self.table(block)
        if isinstance(block, Blockquote):
            return self.blockquote(block)
        if isinstance(block, HorizontalRule):
            return self.horizontal_rule(block)
        if isinstance(block, Image):
            return self.image(block)
        raise TypeError(f"Unsupported block node {type(block).__name__}")

    def _checkpoint(self) -> Any:
        return None

    def _rollback(self, checkpoint: Any) -> None:
        """Discard partial output produced since ``checkpoint``."""

    def image(self, block: Image) -> list[F]:
        handling = self.settings.image_handling
        if handling == "skip":
            return []
        if handling == "link":
            return self.image_link(block, block.alt_text or IMAGE_LINK_FALLBACK)
        return self.image_embed(block)

    def diagram_link_text(self, block: DiagramLink) -> str:
        text = self.settings.mermaid_link_text
        if self.settings.include_mermaid_type and block.kind_label:
            text = f"{text} ({block.kind_label})"
        return text

    def show_language_label(self, block: CodeBlock) -> bool:
        return bool(self.settings.include_language_label and block.language)

    @abstractmethod
    def heading(self, block: Heading) -> list[F]: ...

    @abstractmethod
    def paragraph(self, block: Paragraph) -> list[F]: ...

    @abstractmethod
    def code(self, block: CodeBlock) -> list[F]: ...

    @abstractmethod
    def diagram_link(self, block: DiagramLink) -> list[F]: ...

    @abstractmethod
    def list_block(self, block: ListBlock, depth: int) -> list[F]: ...

    @abstractmethod
    def table(self, block: Table) -> list[F]: ...

    @abstractmethod
    def blockquote(self, block: Blockquote) -> list[F]: ...

    @abstractmethod
    def horizontal_rule(self, block: HorizontalRule) -> list[F]: ...

    @abstractmethod
    def image_embed(self, block: Image) -> list[F]: ...

    @abstractmethod
    def image_link(self, block: Image, label: str) -> list[F]: ...

    @abstractmethod
    def error_fragment(self, kind: str) -> F: ...

    # -- inlines ------------------------------------------------------------
    def render_inlines(self, inlines: Iterable[Inline], target: Any, style: InlineStyle = PLAIN) -> None:
        """Walk ``inlines`` depth first, emitting leaves into ``target``.

        Bold, italic and strikethrough never emit markup of their own; they
        set a flag on ``style`` which every leaf below them receives.
        """
        for node in inlines:
            if isinstance(node, PlainText):
                self.emit_text(target, node.text, style)
            elif isinstance(node, Bold):
                self.render_inlines(node.content, target, replace(style, bold=True))
            elif isinstance(node, Italic):
                self.render_inlines(node.content, target, replace(style, italic=True))
            elif isinstance(node, Strikethrough):
                self.render_inlines(node.content, target, replace(style, strike=True))
            elif isinstance(node, InlineCode):
                self.emit_code(target, node.text, style)
            elif isinstance(node, Hyperlink):
                self.emit_link(target, node, style)
            else:
                raise TypeError(f"Unsupported inline node {type(node).__name__}")

    @abstractmethod
    def emit_text(self, target: Any, text: str, style: InlineStyle) -> None: ...

    @abstractmethod
    def emit_code(self, target: Any, text: str, style: InlineStyle) -> None: ...

    @abstractmethod
    def emit_link(self, target: Any, node: Hyperlink, style: InlineStyle) -> None: ...
