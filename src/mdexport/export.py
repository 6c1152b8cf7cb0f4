"""Export orchestration: parse a note, render it once, hand it to a sink."""

from __future__ import annotations

import logging
from pathlib import Path

from mdexport.config import MDEXPORT_OUTPUT_DIR
from mdexport.exceptions import ExportError
from mdexport.markdown_parser import parse_markdown
from mdexport.renderers import get_renderer
from mdexport.renderers.html import plain_text
from mdexport.schemas import DocumentTree, ExportResult, ExportSettings
from mdexport.sinks import ClipboardSink, FileSink

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "Untitled"


def failure_message(fmt: str, exc: BaseException) -> str:
    if fmt == "clipboard":
        return f"Failed to copy to clipboard: {exc}"
    return f"Failed to export {fmt.upper()}: {exc}"


def output_path(filename: str, extension: str, directory: Path | str) -> Path:
    """Join ``directory`` and ``filename``, adding ``extension`` when missing."""
    name = filename or DEFAULT_FILENAME
    if not name.lower().endswith(extension):
        name = f"{name}{extension}"
    return Path(directory).expanduser() / name


def render_document(
    document: DocumentTree, fmt: str, settings: ExportSettings | None = None
) -> bytes | str:
    """Render ``document`` with a fresh renderer for ``fmt``."""
    return get_renderer(fmt, settings).render(document)


async def export_note(
    markdown: str | None,
    filename: str,
    settings: ExportSettings | None = None,
    fmt: str | None = None,
    *,
    output_dir: Path | str | None = None,
    file_sink: FileSink | None = None,
    clipboard_sink: ClipboardSink | None = None,
) -> ExportResult:
    """Export one note in the requested format.

    Args:
        markdown: Note text; ``None`` or empty exports an empty document.
        filename: Base name of the output file (extension optional).
        settings: Export configuration, defaults when omitted.
        fmt: ``docx``, ``html`` or ``clipboard``; falls back to
            ``settings.default_format``.
        output_dir: Directory for file formats. Falls back to
            ``settings.export_location`` and then ``MDEXPORT_OUTPUT_DIR``.
        file_sink: Sink for file formats.
        clipboard_sink: Sink for the clipboard format.

    Returns:
        ExportResult describing what was produced.

    Raises:
        UnsupportedFormatError: If ``fmt`` is unknown.
        ExportError: If parsing, rendering or the sink fails; the original
            exception is chained.
    """
    opts = settings or ExportSettings()
    fmt = fmt or opts.default_format
    renderer = get_renderer(fmt, opts)

    try:
        document = parse_markdown(markdown or "", opts)
        if not document.blocks:
            logger.info("Note %r is empty; exporting an empty %s document", filename, fmt)
        output = renderer.render(document)

        if renderer.extension is None:
            html = output if isinstance(output, str) else output.decode("utf-8")
            await (clipboard_sink or ClipboardSink()).write(html, plain_text(html))
            return ExportResult(
                format=fmt,
                byte_count=len(html.encode("utf-8")),
                block_count=len(document.blocks),
            )

        payload = output if isinstance(output, bytes) else output.encode("utf-8")
        directory = output_dir or opts.export_location or MDEXPORT_OUTPUT_DIR
        path = await (file_sink or FileSink()).write(
            output_path(filename, renderer.extension, directory), payload
        )
    except Exception as exc:
        logger.exception("Export of %r as %s failed", filename, fmt)
        error_cls = type(exc) if isinstance(exc, ExportError) else ExportError
        raise error_cls(failure_message(fmt, exc)) from exc

    return ExportResult(
        format=fmt,
        path=path,
        byte_count=len(payload),
        block_count=len(document.blocks),
    )
