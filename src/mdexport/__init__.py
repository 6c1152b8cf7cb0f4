"""mdexport: export markdown notes to DOCX, HTML and rich clipboard text."""

from mdexport.exceptions import (
    ClipboardUnavailableError,
    ExportError,
    MdExportError,
    ParseError,
    RenderError,
    UnsupportedFormatError,
)
from mdexport.export import export_note, render_document
from mdexport.markdown_parser import parse_inline, parse_markdown
from mdexport.renderers import get_renderer
from mdexport.schemas import DocumentTree, ExportResult, ExportSettings

__all__ = [
    "ClipboardUnavailableError",
    "DocumentTree",
    "ExportError",
    "ExportResult",
    "ExportSettings",
    "MdExportError",
    "ParseError",
    "RenderError",
    "UnsupportedFormatError",
    "export_note",
    "get_renderer",
    "parse_inline",
    "parse_markdown",
    "render_document",
]
