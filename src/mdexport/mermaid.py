"""Encode mermaid diagram sources into shareable mermaid.live edit links."""

from __future__ import annotations

import base64
import json
import logging
import re
import zlib

from mdexport.config import DEFAULT_MERMAID_THEME, MDEXPORT_MERMAID_BASE_URL

logger = logging.getLogger(__name__)

DEFAULT_KIND = "diagram"
DEFAULT_LABEL = "Diagram"

_KIND_RE = re.compile(r"^([\w-]+)")

_KIND_LABELS = {
    "flowchart": "Flowchart",
    "flowchart-v2": "Flowchart",
    "graph": "Flowchart",
    "sequenceDiagram": "Sequence Diagram",
    "classDiagram": "Class Diagram",
    "stateDiagram": "State Diagram",
    "stateDiagram-v2": "State Diagram",
    "erDiagram": "ER Diagram",
    "journey": "User Journey",
    "gantt": "Gantt Chart",
    "pie": "Pie Chart",
    "quadrantChart": "Quadrant Chart",
    "requirementDiagram": "Requirement Diagram",
    "gitGraph": "Git Graph",
    "mindmap": "Mindmap",
    "timeline": "Timeline",
    "zenuml": "ZenUML",
    "sankey": "Sankey Diagram",
    "sankey-beta": "Sankey Diagram",
    "block": "Block Diagram",
    "block-beta": "Block Diagram",
    "packet": "Packet Diagram",
    "packet-beta": "Packet Diagram",
}


def classify(source: str | None) -> str:
    """Return the diagram keyword from the first non-blank line of ``source``.

    Falls back to ``"diagram"`` for empty input or a first line that does not
    start with an identifier.
    """
    if not source or not source.strip():
        return DEFAULT_KIND
    first_line = source.strip().splitlines()[0].strip()
    match = _KIND_RE.match(first_line)
    if match:
        return match.group(1)
    return DEFAULT_KIND


def humanize(kind: str | None) -> str:
    """Map a diagram keyword to its display name ("Diagram" when unknown)."""
    return _KIND_LABELS.get(kind or "", DEFAULT_LABEL)


def encode(
    source: str | None,
    theme: str = DEFAULT_MERMAID_THEME,
    *,
    base_url: str = MDEXPORT_MERMAID_BASE_URL,
) -> str:
    """Build an edit link for ``source``.

    The payload ``{"code": ..., "mermaid": {"theme": ...}}`` is serialized to
    JSON, zlib-deflated and base64 encoded behind a ``#pako:`` fragment, which
    is the format mermaid.live reads. Malformed diagram syntax is encoded as
    is. Never raises: any failure returns the bare ``base_url``.
    """
    try:
        payload = {"code": source or "", "mermaid": {"theme": theme}}
        serialized = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        compressed = zlib.compress(serialized.encode("utf-8"), 9)
        encoded = base64.b64encode(compressed).decode("ascii")
    except Exception:
        logger.exception("Failed to encode mermaid diagram (%d chars)", len(source or ""))
        return base_url
    return f"{base_url}#pako:{encoded}"


def decode(url: str) -> dict:
    """Inverse of :func:`encode`; returns the JSON payload of an edit link.

    Raises:
        ValueError: If ``url`` carries no ``pako:`` fragment.
    """
    _, sep, encoded = url.partition("#pako:")
    if not sep:
        raise ValueError(f"No pako payload in {url!r}")
    raw = zlib.decompress(base64.b64decode(encoded))
    return json.loads(raw.decode("utf-8"))
