"""Export settings model."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from mdexport.config import DEFAULT_MERMAID_THEME, MDEXPORT_DEFAULT_FORMAT

logger = logging.getLogger(__name__)

ExportFormat = Literal["docx", "clipboard", "html"]
ImageHandling = Literal["embed", "link", "skip"]

_HEX_COLOR_PATTERN = r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$"


def _default_format() -> str:
    if MDEXPORT_DEFAULT_FORMAT in ("docx", "clipboard", "html"):
        return MDEXPORT_DEFAULT_FORMAT
    logger.warning("Ignoring unknown MDEXPORT_DEFAULT_FORMAT %r", MDEXPORT_DEFAULT_FORMAT)
    return "docx"


class ExportSettings(BaseModel):
    """Immutable export configuration shared by the parser and all renderers.

    Attributes:
        default_format: Format used when the caller does not pick one.
        export_location: Directory for file exports; empty means the
            configured output directory.
        mermaid_link_text: Visible text of diagram links.
        include_mermaid_type: Append " (<diagram kind>)" to diagram links.
        mermaid_theme: Theme stored in the diagram edit link payload.
        code_block_font: Monospace font for code blocks and inline code.
        code_block_background: Hex background colour for code blocks.
        include_language_label: Emit the fence language above code blocks.
        image_handling: ``embed``, ``link`` or ``skip`` image blocks.
        remove_obsidian_links: Rewrite ``[[target|label]]`` to plain text.
        open_after_export: Ask the host to open the produced file.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    default_format: ExportFormat = Field(default_factory=_default_format)
    export_location: str = ""
    mermaid_link_text: str = "📊 View Diagram"
    include_mermaid_type: bool = True
    mermaid_theme: str = DEFAULT_MERMAID_THEME
    code_block_font: str = "Consolas"
    code_block_background: str = Field("#f5f5f5", pattern=_HEX_COLOR_PATTERN)
    include_language_label: bool = True
    image_handling: ImageHandling = "embed"
    remove_obsidian_links: bool = True
    open_after_export: bool = False

    @field_validator("code_block_background")
    @classmethod
    def _prefix_hash(cls, value: str) -> str:
        return value if value.startswith("#") else f"#{value}"

    @property
    def code_background_hex(self) -> str:
        """Background colour as six upper-case hex digits without ``#``."""
        value = self.code_block_background.lstrip("#")
        if len(value) == 3:
            value = "".join(ch * 2 for ch in value)
        return value.upper()


def load_settings(path: Path) -> ExportSettings:
    """Merge stored settings over the defaults.

    A missing file yields the defaults. Keys may use either the stored
    camelCase spelling or the snake_case field names.
    """
    if not path.exists():
        return ExportSettings()
    stored = json.loads(path.read_text(encoding="utf-8") or "{}")
    if not isinstance(stored, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return ExportSettings.model_validate(stored)


def save_settings(settings: ExportSettings, path: Path) -> None:
    """Persist settings using the camelCase keys."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        settings.model_dump_json(by_alias=True, indent=2),
        encoding="utf-8",
    )
