"""markdown-it block rules used by the event producer."""

from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

_DEEP_HEADING_RE = re.compile(r"(#{7,})(?:[ \t]+(.*))?$")
_CLOSING_SEQUENCE_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")


def deep_heading_plugin(md: MarkdownIt) -> None:
    """Accept ATX headings with more than six ``#`` characters.

    CommonMark treats ``####### X`` as a paragraph. This rule emits a regular
    heading token pair tagged ``h7``, ``h8``, ... instead, leaving it to the
    consumer to clamp the level.
    """
    md.block.ruler.before(
        "heading",
        "deep_heading",
        _deep_heading,
        {"alt": ["paragraph", "reference", "blockquote"]},
    )


def _deep_heading(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    # indented code
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False

    pos = state.bMarks[startLine] + state.tShift[startLine]
    maximum = state.eMarks[startLine]
    match = _DEEP_HEADING_RE.match(state.src[pos:maximum])
    if match is None:
        return False

    if silent:
        return True

    marker = match.group(1)
    content = _CLOSING_SEQUENCE_RE.sub("", match.group(2) or "").strip()

    state.line = startLine + 1

    token = state.push("heading_open", "h" + str(len(marker)), 1)
    token.markup = marker
    token.map = [startLine, state.line]

    token = state.push("inline", "", 0)
    token.content = content
    token.map = [startLine, state.line]
    token.children = []

    token = state.push("heading_close", "h" + str(len(marker)), -1)
    token.markup = marker

    return True
