"""Test setup for mdexport."""

from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from docx import Document  # noqa: E402

from mdexport.schemas import ExportSettings  # noqa: E402


@pytest.fixture
def settings() -> ExportSettings:
    """Default export settings."""
    return ExportSettings()


@pytest.fixture
def make_settings():
    """Build settings with a few fields overridden."""

    def _make(**overrides) -> ExportSettings:
        return ExportSettings(**overrides)

    return _make


@pytest.fixture
def read_docx():
    """Open rendered DOCX bytes with python-docx."""

    def _read(data: bytes):
        return Document(BytesIO(data))

    return _read
