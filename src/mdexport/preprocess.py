"""Text passes applied to a note before it is tokenized.

Each pass takes and returns markdown text. The heuristics here (what counts
as a directory listing or a tag line) are deliberately loose and only need to
handle the common shapes seen in notes.
"""

from __future__ import annotations

import re

FRONT_MATTER_DELIMITER = "---"

CALLOUT_LABELS = {
    "info": "ℹ️ INFO",
    "tip": "💡 TIP",
    "warning": "⚠️ WARNING",
    "danger": "🚨 DANGER",
    "note": "📝 NOTE",
    "example": "📋 EXAMPLE",
    "question": "❓ QUESTION",
    "success": "✅ SUCCESS",
    "failure": "❌ FAILURE",
    "bug": "🐛 BUG",
    "quote": "💬 QUOTE",
    "abstract": "📄 ABSTRACT",
    "todo": "☑️ TODO",
}

_CALLOUT_RE = re.compile(
    r"^(?P<prefix>(?:[ \t]{0,3}>[ \t]?)+)\[!(?P<kind>[\w-]+)\][+-]?[ \t]*(?P<title>.*?)[ \t]*$",
    re.MULTILINE,
)
_EMPTY_FENCE_RE = re.compile(r"^[ \t]*```[ \t]*$")
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_LISTING_LINE_RE = re.compile(r"^[\w\s./\\\-+*│├└┬┴┼─┌┐┘┤┃┣┗━]+$")
_TRAILING_TAGS_RE = re.compile(r"\n[ \t]*\n\s*#[\w-]+(?:[ \t]+#[\w-]+)*\s*\Z")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_front_matter(text: str) -> str:
    """Remove a leading ``---`` delimited block (YAML front matter).

    Left untouched when the opening delimiter is never closed.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return text
    for index in range(1, len(lines)):
        if lines[index].strip() == FRONT_MATTER_DELIMITER:
            return "\n".join(lines[index + 1 :])
    return text


def callout_label(kind: str) -> str:
    return CALLOUT_LABELS.get(kind.lower(), f"📌 {kind.upper()}")


def convert_callouts(text: str) -> str:
    """Rewrite ``> [!kind] Title`` headers into bold label lines.

    The quote prefix is kept so the callout stays a blockquote, and an empty
    quote line is added after the label so the body starts a new paragraph.
    """

    def _replace(match: re.Match[str]) -> str:
        prefix = match.group("prefix").rstrip()
        label = callout_label(match.group("kind"))
        title = match.group("title")
        header = f"**{label}: {title}**" if title else f"**{label}**"
        return f"{prefix} {header}\n{prefix}"

    return _CALLOUT_RE.sub(_replace, text)


def _looks_like_listing(lines: list[str]) -> bool:
    return bool(lines) and all(_LISTING_LINE_RE.match(line) for line in lines)


def repair_empty_fences(text: str) -> str:
    """Pull a directory listing into an empty fence that precedes it.

    Notes pasted from some editors contain "```\\n```" followed by the tree
    listing that was meant to be inside it. The listing runs until the next
    blank line or fence. Fences already open are skipped over.
    """
    lines = text.split("\n")
    out: list[str] = []
    in_fence = False
    index = 0
    while index < len(lines):
        line = lines[index]
        if (
            not in_fence
            and _EMPTY_FENCE_RE.match(line)
            and index + 1 < len(lines)
            and _EMPTY_FENCE_RE.match(lines[index + 1])
        ):
            end = index + 2
            while end < len(lines) and lines[end].strip() and not _FENCE_RE.match(lines[end]):
                end += 1
            listing = lines[index + 2 : end]
            out.append(line)
            if _looks_like_listing(listing):
                out.extend(listing)
                out.append(lines[index + 1])
                index = end
            else:
                out.append(lines[index + 1])
                index += 2
            continue
        if _FENCE_RE.match(line):
            in_fence = not in_fence
        out.append(line)
        index += 1
    return "\n".join(out)


def strip_trailing_tags(text: str) -> str:
    """Drop a final line made only of ``#tag`` tokens after a blank line."""
    return _TRAILING_TAGS_RE.sub("", text)

