"""Output backends for document trees."""

from __future__ import annotations

from mdexport.exceptions import UnsupportedFormatError
from mdexport.renderers.base import InlineStyle, Renderer
from mdexport.renderers.docx import DocxRenderer
from mdexport.renderers.html import ClipboardRenderer, HtmlRenderer
from mdexport.schemas import ExportSettings

RENDERERS: dict[str, type[Renderer]] = {
    DocxRenderer.format_name: DocxRenderer,
    HtmlRenderer.format_name: HtmlRenderer,
    ClipboardRenderer.format_name: ClipboardRenderer,
}


def get_renderer(fmt: str, settings: ExportSettings | None = None) -> Renderer:
    """Return a fresh renderer for ``fmt``.

    Raises:
        UnsupportedFormatError: If ``fmt`` names no known backend.
    """
    try:
        renderer_cls = RENDERERS[fmt]
    except KeyError as exc:
        known = ", ".join(sorted(RENDERERS))
        raise UnsupportedFormatError(f"Unknown export format {fmt!r} (expected one of: {known})") from exc
    return renderer_cls(settings)


__all__ = [
    "ClipboardRenderer",
    "DocxRenderer",
    "HtmlRenderer",
    "InlineStyle",
    "RENDERERS",
    "Renderer",
    "get_renderer",
]
