"""Export output model."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel


class ExportResult(BaseModel):
    """Outcome of one export call."""

    format: str
    path: Path | None = None
    byte_count: int
    block_count: int
