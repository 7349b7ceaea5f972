"""Inline style accumulator.

Tracks how deeply each inline style span is nested and which link target is
active, and stamps every emitted run with a resolved RunStyle snapshot. The
counters belong to one conversion pass and are reset at its start.
"""

from __future__ import annotations

import logging
from typing import Optional

from mdview.config import StyleConfig
from mdview.ir.schema import Run, RunStyle
from mdview.parsers.events import Tag

logger = logging.getLogger(__name__)

_COUNTED_TAGS = (
    Tag.STRONG,
    Tag.EMPHASIS,
    Tag.STRIKETHROUGH,
    Tag.SUPERSCRIPT,
    Tag.SUBSCRIPT,
    Tag.UNDERLINE,
)

STYLE_TAGS = frozenset(_COUNTED_TAGS + (Tag.LINK,))


class StyleAccumulator:
    """Depth counters for inline style spans plus the active link stack."""

    def __init__(self, config: Optional[StyleConfig] = None):
        self.config = config or StyleConfig()
        self._depths: dict[Tag, int] = {}
        self._links: list[str] = []
        self.reset()

    def reset(self) -> None:
        self._depths = {tag: 0 for tag in _COUNTED_TAGS}
        self._links = []

    def open(self, tag: Tag, href: Optional[str] = None) -> None:
        if tag is Tag.LINK:
            self._links.append(href or "")
        elif tag in self._depths:
            self._depths[tag] += 1

    def close(self, tag: Tag) -> None:
        """Close one level of a span; stray closers are ignored."""
        if tag is Tag.LINK:
            if self._links:
                self._links.pop()
            else:
                logger.debug("Ignoring stray link close")
        elif self._depths.get(tag, 0) > 0:
            self._depths[tag] -= 1
        else:
            logger.debug("Ignoring stray %s close", tag.value)

    def depth(self, tag: Tag) -> int:
        return self._depths.get(tag, 0)

    @property
    def link(self) -> Optional[str]:
        return self._links[-1] if self._links else None

    def snapshot(self) -> RunStyle:
        link = self.link
        return RunStyle(
            bold=self._depths[Tag.STRONG] > 0,
            italic=self._depths[Tag.EMPHASIS] > 0,
            strikethrough=self._depths[Tag.STRIKETHROUGH] > 0,
            superscript=self._depths[Tag.SUPERSCRIPT] > 0,
            subscript=self._depths[Tag.SUBSCRIPT] > 0,
            underline=self._depths[Tag.UNDERLINE] > 0 or link is not None,
            color=self.config.link_color if link is not None else None,
            link=link,
        )

    def text_run(self, text: str) -> Run:
        return Run(text=text, style=self.snapshot())

    def code_run(self, text: str) -> Run:
        """Code spans are always monospace on a tinted background."""
        style = self.snapshot().model_copy(
            update={
                "font_family": self.config.code_font_family,
                "background": self.config.code_background,
            }
        )
        return Run(text=text, style=style)

    def math_run(self, text: str) -> Run:
        style = self.snapshot().model_copy(
            update={"font_family": self.config.math_font_family, "italic": True}
        )
        return Run(text=text, style=style)

    def footnote_run(self, label: str) -> Run:
        style = self.snapshot().model_copy(update={"superscript": True})
        return Run(text=f"[{label}]", style=style)

    def break_run(self) -> Run:
        return Run(text="\n")
