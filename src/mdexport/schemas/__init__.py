"""Shared schemas for mdexport."""

from mdexport.schemas.document import (
    Block,
    Blockquote,
    Bold,
    CodeBlock,
    DiagramLink,
    DocumentTree,
    Heading,
    HorizontalRule,
    Hyperlink,
    Image,
    Inline,
    InlineCode,
    InlineSeq,
    Italic,
    ListBlock,
    ListItem,
    Paragraph,
    PlainText,
    Strikethrough,
    Table,
)
from mdexport.schemas.export import ExportResult
from mdexport.schemas.settings import (
    ExportFormat,
    ExportSettings,
    ImageHandling,
    load_settings,
    save_settings,
)

__all__ = [
    "Block",
    "Blockquote",
    "Bold",
    "CodeBlock",
    "DiagramLink",
    "DocumentTree",
    "ExportFormat",
    "ExportResult",
    "ExportSettings",
    "Heading",
    "HorizontalRule",
    "Hyperlink",
    "Image",
    "ImageHandling",
    "Inline",
    "InlineCode",
    "InlineSeq",
    "Italic",
    "ListBlock",
    "ListItem",
    "Paragraph",
    "PlainText",
    "Strikethrough",
    "Table",
    "load_settings",
    "save_settings",
]
