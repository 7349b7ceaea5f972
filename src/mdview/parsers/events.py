"""Flat event vocabulary consumed by the model builder.

An event producer turns Markdown source into a sequence of open/close/atomic
events. Open and close events carry a Tag; atomic events carry text or a
small payload (heading level, checked flag, footnote label, ...).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EventKind(str, Enum):
    START = "start"
    END = "end"
    TEXT = "text"
    CODE = "code"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    RULE = "rule"
    PAGE_BREAK = "page_break"
    TASK_MARKER = "task_marker"
    FOOTNOTE_REFERENCE = "footnote_reference"
    INLINE_MATH = "inline_math"
    DISPLAY_MATH = "display_math"
    HTML = "html"


class Tag(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    ITEM = "item"
    CODE_BLOCK = "code_block"
    BLOCK_QUOTE = "block_quote"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    SUPERSCRIPT = "superscript"
    SUBSCRIPT = "subscript"
    UNDERLINE = "underline"
    LINK = "link"
    IMAGE = "image"
    FOOTNOTE_DEFINITION = "footnote_definition"


@dataclass(frozen=True)
class Event:
    """One parse event.

    Only the fields relevant to the event's kind/tag are populated:
    ``level`` for headings, ``start`` for numbered lists, ``language`` for
    code blocks, ``alignments`` for tables, ``href``/``title`` for links and
    images, ``checked`` for task markers, ``label`` for footnotes.
    """

    kind: EventKind
    tag: Optional[Tag] = None
    text: str = ""
    level: Optional[int] = None
    start: Optional[int] = None
    language: Optional[str] = None
    alignments: tuple[str, ...] = ()
    href: Optional[str] = None
    title: Optional[str] = None
    checked: Optional[bool] = None
    label: Optional[str] = None

    @classmethod
    def open(cls, tag: Tag, **payload) -> Event:
        return cls(EventKind.START, tag, **payload)

    @classmethod
    def close(cls, tag: Tag) -> Event:
        return cls(EventKind.END, tag)

    @classmethod
    def text_event(cls, text: str) -> Event:
        return cls(EventKind.TEXT, text=text)
