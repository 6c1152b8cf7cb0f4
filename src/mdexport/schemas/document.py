"""Format-neutral document tree produced by the parser and read by renderers.

Every node is a frozen pydantic model whose sequences are tuples, so a tree
cannot be changed after construction. Nodes hold no reference to their parent;
a tree owns its descendants outright.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# --------------------------------------------------------------------------
# Inline nodes
# --------------------------------------------------------------------------


class PlainText(_Node):
    """Unformatted text run."""

    type: Literal["text"] = "text"
    text: str


class Bold(_Node):
    type: Literal["bold"] = "bold"
    content: tuple[Inline, ...] = ()


class Italic(_Node):
    type: Literal["italic"] = "italic"
    content: tuple[Inline, ...] = ()


class Strikethrough(_Node):
    type: Literal["strikethrough"] = "strikethrough"
    content: tuple[Inline, ...] = ()


class InlineCode(_Node):
    type: Literal["code"] = "code"
    text: str


class Hyperlink(_Node):
    """Link whose visible label is itself an inline sequence."""

    type: Literal["link"] = "link"
    text: tuple[Inline, ...] = ()
    url: str


Inline = Annotated[
    Union[PlainText, Bold, Italic, Strikethrough, InlineCode, Hyperlink],
    Field(discriminator="type"),
]

InlineSeq = tuple[Inline, ...]


# --------------------------------------------------------------------------
# Block nodes
# --------------------------------------------------------------------------


class Heading(_Node):
    type: Literal["heading"] = "heading"
    level: int = Field(..., ge=1, le=6)
    content: InlineSeq = ()


class Paragraph(_Node):
    type: Literal["paragraph"] = "paragraph"
    content: InlineSeq = ()


class CodeBlock(_Node):
    """Fenced or indented code; ``content`` keeps every character verbatim."""

    type: Literal["code"] = "code"
    language: str | None = None
    content: str = ""


class DiagramLink(_Node):
    """A diagram fence replaced by an edit link to the diagram service.

    Attributes:
        kind_label: Human readable diagram kind (e.g. "Flowchart").
        source_code: Diagram source with surrounding whitespace trimmed.
        url: Edit link carrying the compressed source.
    """

    type: Literal["mermaid"] = "mermaid"
    kind_label: str
    source_code: str
    url: str


class ListItem(_Node):
    content: InlineSeq = ()
    children: ListBlock | None = None


class ListBlock(_Node):
    type: Literal["list"] = "list"
    ordered: bool = False
    items: tuple[ListItem, ...] = ()


class Table(_Node):
    """Table with one header row; every row has ``len(headers)`` cells."""

    type: Literal["table"] = "table"
    headers: tuple[InlineSeq, ...] = ()
    rows: tuple[tuple[InlineSeq, ...], ...] = ()


class Blockquote(_Node):
    type: Literal["blockquote"] = "blockquote"
    content: tuple[Block, ...] = ()


class HorizontalRule(_Node):
    type: Literal["hr"] = "hr"


class Image(_Node):
    type: Literal["image"] = "image"
    alt_text: str = ""
    url: str


Block = Annotated[
    Union[
        Heading,
        Paragraph,
        CodeBlock,
        DiagramLink,
        ListBlock,
        Table,
        Blockquote,
        HorizontalRule,
        Image,
    ],
    Field(discriminator="type"),
]


class DocumentTree(_Node):
    """Root of a parsed note: an ordered forest of blocks."""

    blocks: tuple[Block, ...] = ()


for _model in (
    Bold,
    Italic,
    Strikethrough,
    Hyperlink,
    Heading,
    Paragraph,
    ListItem,
    ListBlock,
    Table,
    Blockquote,
    DocumentTree,
):
    _model.model_rebuild()
