"""Command-line front end: export a markdown note to DOCX, HTML or the clipboard."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from mdexport.config import MDEXPORT_LOG_LEVEL, MDEXPORT_SETTINGS_FILE
from mdexport.exceptions import MdExportError
from mdexport.export import export_note
from mdexport.renderers import RENDERERS
from mdexport.schemas import load_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdexport",
        description="Export a markdown note to DOCX, HTML or rich clipboard text.",
    )
    parser.add_argument("input", type=Path, help="Markdown file to export")
    parser.add_argument(
        "-f",
        "--format",
        choices=sorted(RENDERERS),
        help="Output format (defaults to the configured default format)",
    )
    parser.add_argument("-o", "--output-dir", type=Path, help="Directory for the exported file")
    parser.add_argument("--name", help="Output file name (defaults to the input file stem)")
    parser.add_argument(
        "--settings",
        type=Path,
        default=MDEXPORT_SETTINGS_FILE,
        help=f"JSON settings file (default: {MDEXPORT_SETTINGS_FILE})",
    )
    parser.add_argument("--open", action="store_true", help="Open the exported file afterwards")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def open_file(path: Path) -> None:
    """Open ``path`` with the platform's default application."""
    if sys.platform.startswith("win"):
        os.startfile(path)  # type: ignore[attr-defined]
        return
    opener = "open" if sys.platform == "darwin" else "xdg-open"
    if shutil.which(opener) is None:
        logger.warning("Cannot open %s: %s is not installed", path, opener)
        return
    subprocess.run([opener, str(path)], check=False)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else MDEXPORT_LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings)
        markdown = args.input.read_text(encoding="utf-8")
    except (OSError, ValueError) as exc:
        print(f"❌ Export failed: {exc}", file=sys.stderr)
        return 1

    name = args.name or args.input.stem
    try:
        result = asyncio.run(
            export_note(
                markdown,
                name,
                settings,
                args.format,
                output_dir=args.output_dir,
            )
        )
    except MdExportError as exc:
        print(f"❌ Export failed: {exc}", file=sys.stderr)
        return 1

    if result.path is None:
        print("✅ Copied to clipboard! Paste with Ctrl+V (Cmd+V on Mac)")
        return 0

    print(f"✅ Exported to {result.path}")
    if args.open or settings.open_after_export:
        open_file(result.path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
