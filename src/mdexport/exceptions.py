"""Custom exceptions for mdexport."""


class MdExportError(Exception):
    """Base exception for mdexport operations."""


class ParseError(MdExportError):
    """Error during markdown parsing."""


class RenderError(MdExportError):
    """Error while producing a whole output document."""


class ExportError(MdExportError):
    """An export attempt failed; the original cause is chained."""


class ClipboardUnavailableError(ExportError):
    """No usable system clipboard backend was found."""


class UnsupportedFormatError(MdExportError, ValueError):
    """Requested output format is not one of the known renderers."""
