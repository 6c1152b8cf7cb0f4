"""Local configuration for mdexport."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_FORMAT = "docx"
DEFAULT_OUTPUT_DIR = "."
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_MERMAID_BASE_URL = "https://mermaid.live/edit"
DEFAULT_MERMAID_THEME = "default"
DEFAULT_SETTINGS_FILE = "~/.mdexport.json"

MDEXPORT_DEFAULT_FORMAT = os.getenv("MDEXPORT_DEFAULT_FORMAT", DEFAULT_FORMAT)
MDEXPORT_OUTPUT_DIR = Path(os.getenv("MDEXPORT_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)).expanduser()
MDEXPORT_LOG_LEVEL = os.getenv("MDEXPORT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
MDEXPORT_SETTINGS_FILE = Path(os.getenv("MDEXPORT_SETTINGS_FILE", DEFAULT_SETTINGS_FILE)).expanduser()

# Edit endpoint of the diagram service; the encoded payload is appended as a fragment.
MDEXPORT_MERMAID_BASE_URL = os.getenv("MDEXPORT_MERMAID_BASE_URL", DEFAULT_MERMAID_BASE_URL).rstrip("#")
