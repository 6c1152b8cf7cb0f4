"""Output sinks: the file system and the system clipboard."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from mdexport.exceptions import ClipboardUnavailableError, ExportError

logger = logging.getLogger(__name__)

# Command-line clipboard backends, tried in order. The flavour says which
# payload the command receives on stdin.
CLIPBOARD_COMMANDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("wl-copy", "--type", "text/html"), "html"),
    (("xclip", "-selection", "clipboard", "-t", "text/html"), "html"),
    (("pbcopy",), "text"),
)


async def mkdir_async(path: Path, parents: bool = False, exist_ok: bool = False) -> None:
    """Create a directory asynchronously using a thread pool."""
    await asyncio.to_thread(path.mkdir, parents=parents, exist_ok=exist_ok)


async def write_bytes_async(path: Path, content: bytes) -> None:
    """Write bytes to a file asynchronously using a thread pool.

    Args:
        path: Path to the file to write.
        content: Bytes to write.
    """
    await asyncio.to_thread(path.write_bytes, content)


class FileSink:
    """Write rendered packages or pages to disk."""

    async def write(self, path: Path, content: bytes) -> Path:
        await mkdir_async(path.parent, parents=True, exist_ok=True)
        await write_bytes_async(path, content)
        logger.info("Wrote %d bytes to %s", len(content), path)
        return path


@dataclass
class ClipboardSink:
    """Copy an HTML payload to the system clipboard.

    Attributes:
        commands: Candidate ``(argv, flavour)`` pairs; the first whose
            executable is on ``PATH`` is used.
    """

    commands: tuple[tuple[tuple[str, ...], str], ...] = field(default=CLIPBOARD_COMMANDS)

    def _select(self) -> tuple[tuple[str, ...], str]:
        for argv, flavour in self.commands:
            if shutil.which(argv[0]):
                return argv, flavour
        names = ", ".join(argv[0] for argv, _ in self.commands)
        raise ClipboardUnavailableError(f"No clipboard command found (tried {names})")

    def _copy(self, html: str, text: str) -> None:
        argv, flavour = self._select()
        payload = html if flavour == "html" else text
        result = subprocess.run(
            list(argv),
            input=payload,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise ExportError(f"{argv[0]} exited with status {result.returncode}: {result.stderr.strip()}")
        logger.info("Copied %d characters to the clipboard with %s", len(payload), argv[0])

    async def write(self, html: str, text: str) -> None:
        """Copy ``html`` (or ``text`` for plain-text-only backends).

        Raises:
            ClipboardUnavailableError: If no backend command is installed.
            ExportError: If the backend command fails.
        """
        await asyncio.to_thread(self._copy, html, text)
