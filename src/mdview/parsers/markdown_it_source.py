"""markdown-it-py based event producer.

markdown-it produces a list of block tokens whose ``inline`` tokens carry
their own child token lists. This module flattens both levels into the single
sequential event stream the model builder consumes, translating plugin
output (task checkboxes, footnotes, math, sup/sub) into first-class events.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Optional

import markdown_it
from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.subscript import sub_plugin
from mdit_py_plugins.superscript import superscript_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from mdview.config import Config
from mdview.parsers.base import BaseEventSource
from mdview.parsers.events import Event, EventKind, Tag
from mdview.parsers.plugins import deep_heading_plugin

logger = logging.getLogger(__name__)

# Block token type -> (event kind, tag) for pairs that carry no payload
_SIMPLE_BLOCK_TOKENS: dict[str, tuple[EventKind, Tag]] = {
    "paragraph_open": (EventKind.START, Tag.PARAGRAPH),
    "paragraph_close": (EventKind.END, Tag.PARAGRAPH),
    "heading_close": (EventKind.END, Tag.HEADING),
    "bullet_list_close": (EventKind.END, Tag.LIST),
    "ordered_list_close": (EventKind.END, Tag.LIST),
    "list_item_open": (EventKind.START, Tag.ITEM),
    "list_item_close": (EventKind.END, Tag.ITEM),
    "blockquote_open": (EventKind.START, Tag.BLOCK_QUOTE),
    "blockquote_close": (EventKind.END, Tag.BLOCK_QUOTE),
    "table_close": (EventKind.END, Tag.TABLE),
    "thead_open": (EventKind.START, Tag.TABLE_HEAD),
    "thead_close": (EventKind.END, Tag.TABLE_HEAD),
    "tr_open": (EventKind.START, Tag.TABLE_ROW),
    "tr_close": (EventKind.END, Tag.TABLE_ROW),
    "th_open": (EventKind.START, Tag.TABLE_CELL),
    "th_close": (EventKind.END, Tag.TABLE_CELL),
    "td_open": (EventKind.START, Tag.TABLE_CELL),
    "td_close": (EventKind.END, Tag.TABLE_CELL),
    "footnote_close": (EventKind.END, Tag.FOOTNOTE_DEFINITION),
}

_SIMPLE_INLINE_TOKENS: dict[str, tuple[EventKind, Tag]] = {
    "em_open": (EventKind.START, Tag.EMPHASIS),
    "em_close": (EventKind.END, Tag.EMPHASIS),
    "strong_open": (EventKind.START, Tag.STRONG),
    "strong_close": (EventKind.END, Tag.STRONG),
    "s_open": (EventKind.START, Tag.STRIKETHROUGH),
    "s_close": (EventKind.END, Tag.STRIKETHROUGH),
    "sup_open": (EventKind.START, Tag.SUPERSCRIPT),
    "sup_close": (EventKind.END, Tag.SUPERSCRIPT),
    "sub_open": (EventKind.START, Tag.SUBSCRIPT),
    "sub_close": (EventKind.END, Tag.SUBSCRIPT),
    "link_close": (EventKind.END, Tag.LINK),
}

_HTML_STYLE_TAGS = {
    "sup": Tag.SUPERSCRIPT,
    "sub": Tag.SUBSCRIPT,
    "u": Tag.UNDERLINE,
    "ins": Tag.UNDERLINE,
}

_HTML_TAG_RE = re.compile(r"^<\s*(/)?\s*([a-zA-Z]+)\s*>$")
_HTML_BREAK_RE = re.compile(r"^<\s*br\s*/?\s*>$", re.IGNORECASE)
_HTML_PAGE_BREAK_RE = re.compile(
    r"^\s*(?:<!--\s*page\s*-?break\s*-->"
    r"|<div[^>]*page-break-(?:before|after)\s*:\s*always[^>]*>\s*(?:</div>)?)\s*$",
    re.IGNORECASE,
)
_LATEX_PAGE_BREAKS = {"\\pagebreak", "\\newpage"}


class MarkdownItEventSource(BaseEventSource):
    """Event producer built on markdown-it-py and mdit-py-plugins."""

    def __init__(self, config: Config | None = None):
        super().__init__(config)
        self._md = self._build_parser()

    @property
    def name(self) -> str:
        return "markdown-it"

    @property
    def version(self) -> str:
        return markdown_it.__version__

    def _build_parser(self) -> MarkdownIt:
        options = self.config.parser
        md = MarkdownIt("commonmark")
        if options.tables:
            md.enable("table")
        if options.strikethrough:
            md.enable("strikethrough")
        md.use(deep_heading_plugin)
        if options.tasklists:
            md.use(tasklists_plugin)
        if options.footnotes:
            md.use(footnote_plugin)
        if options.math:
            md.use(dollarmath_plugin)
        if options.superscript:
            md.use(superscript_plugin)
        if options.subscript:
            md.use(sub_plugin)
        return md

    def tokens(self, text: str) -> list[Token]:
        """Return the raw markdown-it token list (for debugging)."""
        return self._md.parse(text)

    def events(self, text: str) -> Iterator[Event]:
        tokens = self._md.parse(text)
        i = 0
        while i < len(tokens):
            if _is_latex_page_break(tokens, i):
                yield Event(EventKind.PAGE_BREAK)
                i += 3
                continue
            yield from self._block_events(tokens, i)
            i += 1

    def _block_events(self, tokens: list[Token], index: int) -> Iterator[Event]:
        token = tokens[index]
        ttype = token.type

        simple = _SIMPLE_BLOCK_TOKENS.get(ttype)
        if simple is not None:
            kind, tag = simple
            yield Event(kind, tag)
        elif ttype == "inline":
            yield from self._inline_events(token.children or [])
        elif ttype == "heading_open":
            yield Event.open(Tag.HEADING, level=int(token.tag[1:]))
        elif ttype == "bullet_list_open":
            yield Event.open(Tag.LIST)
        elif ttype == "ordered_list_open":
            start = token.attrGet("start")
            yield Event.open(Tag.LIST, start=1 if start is None else int(start))
        elif ttype == "table_open":
            yield Event.open(Tag.TABLE, alignments=_table_alignments(tokens, index))
        elif ttype in ("fence", "code_block"):
            info = (token.info or "").strip()
            yield Event.open(Tag.CODE_BLOCK, language=info.split()[0] if info else None)
            yield Event.text_event(token.content)
            yield Event.close(Tag.CODE_BLOCK)
        elif ttype == "hr":
            yield Event(EventKind.RULE)
        elif ttype in ("math_block", "math_block_label"):
            yield Event(EventKind.DISPLAY_MATH, text=token.content)
        elif ttype == "html_block":
            if _HTML_PAGE_BREAK_RE.match(token.content):
                yield Event(EventKind.PAGE_BREAK)
            else:
                yield Event(EventKind.HTML, text=token.content)
        elif ttype == "footnote_open":
            yield Event.open(Tag.FOOTNOTE_DEFINITION, label=_footnote_label(token))
        elif ttype in ("tbody_open", "tbody_close", "footnote_block_open", "footnote_block_close"):
            pass
        else:
            logger.debug("Ignoring block token %s", ttype)

    def _inline_events(self, children: list[Token]) -> Iterator[Event]:
        after_task_marker = False
        for child in children:
            ctype = child.type

            if ctype in ("text", "text_special"):
                text = child.content.lstrip() if after_task_marker else child.content
                after_task_marker = False
                if text:
                    yield Event.text_event(text)
                continue
            after_task_marker = False

            simple = _SIMPLE_INLINE_TOKENS.get(ctype)
            if simple is not None:
                kind, tag = simple
                yield Event(kind, tag)
            elif ctype == "code_inline":
                yield Event(EventKind.CODE, text=child.content)
            elif ctype == "softbreak":
                yield Event(EventKind.SOFT_BREAK)
            elif ctype == "hardbreak":
                yield Event(EventKind.HARD_BREAK)
            elif ctype == "link_open":
                yield Event.open(
                    Tag.LINK,
                    href=_str_attr(child, "href"),
                    title=_str_attr(child, "title"),
                )
            elif ctype == "image":
                yield Event.open(
                    Tag.IMAGE,
                    href=_str_attr(child, "src") or "",
                    title=_str_attr(child, "title"),
                )
                yield from self._inline_events(child.children or [])
                yield Event.close(Tag.IMAGE)
            elif ctype in ("math_inline", "math_inline_double"):
                yield Event(EventKind.INLINE_MATH, text=child.content)
            elif ctype == "footnote_ref":
                yield Event(EventKind.FOOTNOTE_REFERENCE, label=_footnote_label(child))
            elif ctype == "html_inline":
                event = _html_inline_event(child.content)
                if event.kind is EventKind.TASK_MARKER:
                    after_task_marker = True
                yield event
            elif ctype == "footnote_anchor":
                pass
            else:
                logger.debug("Ignoring inline token %s", ctype)


def _str_attr(token: Token, name: str) -> Optional[str]:
    value = token.attrGet(name)
    return None if value is None else str(value)


def _footnote_label(token: Token) -> str:
    meta = token.meta or {}
    label = meta.get("label")
    if label:
        return str(label)
    return str(meta.get("id", 0) + 1)


def _table_alignments(tokens: list[Token], index: int) -> tuple[str, ...]:
    """Collect header cell alignments ('left', 'center', 'right', 'none')."""
    alignments: list[str] = []
    for token in tokens[index + 1:]:
        if token.type == "tr_close":
            break
        if token.type == "th_open":
            style = _str_attr(token, "style") or ""
            _, _, align = style.partition("text-align:")
            alignments.append(align.strip() or "none")
    return tuple(alignments)


def _html_inline_event(content: str) -> Event:
    if "task-list-item-checkbox" in content:
        return Event(EventKind.TASK_MARKER, checked='checked="checked"' in content)
    if _HTML_BREAK_RE.match(content):
        return Event(EventKind.HARD_BREAK)
    match = _HTML_TAG_RE.match(content)
    if match:
        tag = _HTML_STYLE_TAGS.get(match.group(2).lower())
        if tag is not None:
            return Event.close(tag) if match.group(1) else Event.open(tag)
    return Event(EventKind.HTML, text=content)


def _is_latex_page_break(tokens: list[Token], index: int) -> bool:
    """A paragraph consisting only of ``\\pagebreak`` or ``\\newpage``."""
    if index + 2 >= len(tokens):
        return False
    return (
        tokens[index].type == "paragraph_open"
        and tokens[index + 1].type == "inline"
        and tokens[index + 1].content.strip() in _LATEX_PAGE_BREAKS
        and tokens[index + 2].type == "paragraph_close"
    )
