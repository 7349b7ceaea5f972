"""Pattern-based source highlighting for the raw-source view.

Spans are computed line by line with regular expressions, independently of
the parsed tree: a ``#`` line inside a code fence is still reported as a
heading. Spans may overlap and are returned in discovery order; layering is
left to the renderer. Offsets are UTF-8 byte positions into the source.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel


class HighlightKind(str, Enum):
    HEADING = "heading"
    EMPHASIS = "emphasis"
    CODE_FENCE = "code_fence"
    LINK = "link"
    QUOTE = "quote"
    LIST_MARKER = "list_marker"
    RULE = "rule"
    TABLE_ROW = "table_row"


class HighlightSpan(BaseModel):
    """Half-open byte range ``[start, end)`` tagged with a token kind."""

    start: int
    end: int
    kind: HighlightKind


_HEADING_RE = re.compile(r"^ {0,3}#{1,6}(?:[ \t]|$)")
_QUOTE_RE = re.compile(r"^ {0,3}>")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_RULE_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_LIST_MARKER_RE = re.compile(r"^[ \t]*([-*+]|\d{1,9}[.)])(?=[ \t]|$)")
_TABLE_ROW_RE = re.compile(r"^[ \t]*\|.*\|[ \t]*$")

_EMPHASIS_RE = re.compile(
    r"(\*\*|__|~~)(?=\S).+?(?<=\S)\1"
    r"|(?<![*\w])\*(?=[^\s*]).+?(?<=[^\s*])\*(?!\*)"
    r"|(?<![_\w])_(?=[^\s_]).+?(?<=[^\s_])_(?![_\w])"
)
_LINK_RE = re.compile(r"!?\[[^\]\n]*\]\([^)\n]*\)|<[a-zA-Z][a-zA-Z0-9+.-]*:[^\s<>]*>")

_INLINE_PATTERNS = (
    (_EMPHASIS_RE, HighlightKind.EMPHASIS),
    (_LINK_RE, HighlightKind.LINK),
)


def highlight_source(text: str) -> list[HighlightSpan]:
    """Scan source text and return highlight spans in byte offsets.

    Args:
        text: The full Markdown source.

    Returns:
        Unordered, possibly overlapping spans. Fenced regions are reported
        as one CODE_FENCE span from the opening fence line to the end of
        the closing one (or the end of the text when left open).
    """
    spans: list[HighlightSpan] = []
    offset = 0
    fence_start: int | None = None
    fence_marker = ""

    for raw_line in text.splitlines(keepends=True):
        line = raw_line.rstrip("\r\n")
        line_bytes = len(line.encode("utf-8"))
        line_end = offset + line_bytes

        def add(kind: HighlightKind, start: int = 0, end: int | None = None) -> None:
            start_byte = offset + _byte_len(line[:start])
            end_byte = line_end if end is None else offset + _byte_len(line[:end])
            if end_byte > start_byte:
                spans.append(HighlightSpan(start=start_byte, end=end_byte, kind=kind))

        fence = _FENCE_RE.match(line)
        if fence_start is None and fence:
            fence_start, fence_marker = offset, fence.group(1)
        elif (
            fence_start is not None
            and fence
            and not line[fence.end():].strip()
            and _closes_fence(fence.group(1), fence_marker)
        ):
            spans.append(HighlightSpan(start=fence_start, end=line_end, kind=HighlightKind.CODE_FENCE))
            fence_start, fence_marker = None, ""

        if _HEADING_RE.match(line):
            add(HighlightKind.HEADING)
        if _QUOTE_RE.match(line):
            add(HighlightKind.QUOTE)
        if _RULE_RE.match(line):
            add(HighlightKind.RULE)
        if _TABLE_ROW_RE.match(line):
            add(HighlightKind.TABLE_ROW)
        marker = _LIST_MARKER_RE.match(line)
        if marker:
            add(HighlightKind.LIST_MARKER, marker.start(1), marker.end(1))

        for pattern, kind in _INLINE_PATTERNS:
            for match in pattern.finditer(line):
                add(kind, match.start(), match.end())

        offset += len(raw_line.encode("utf-8"))

    if fence_start is not None:
        end = len(text.rstrip("\r\n").encode("utf-8"))
        if end > fence_start:
            spans.append(HighlightSpan(start=fence_start, end=end, kind=HighlightKind.CODE_FENCE))

    return spans


def _closes_fence(candidate: str, opener: str) -> bool:
    return candidate[0] == opener[0] and len(candidate) >= len(opener)


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))
