"""Mode-specific view payloads.

A snapshot is rebuilt from scratch for every request: the mode only selects
which pieces are computed, and never touches the source text.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from mdview.builder.model_builder import convert_markdown
from mdview.config import Config
from mdview.exceptions import ConfigError
from mdview.ir.schema import DocumentTree
from mdview.views.highlighter import HighlightSpan, highlight_source

if TYPE_CHECKING:
    from mdview.assets.image_cache import ImageAssetCache
    from mdview.document import MarkdownDocument

logger = logging.getLogger(__name__)


class ViewMode(str, Enum):
    RENDERED = "rendered"
    SOURCE = "source"
    SPLIT = "split"

    @classmethod
    def parse(cls, value: Union[str, ViewMode]) -> ViewMode:
        """Case-insensitive lookup by value or name."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for mode in cls:
            if mode.value == key:
                return mode
        raise ConfigError(
            f"Unknown view mode: '{value}'. Available: "
            + ", ".join(mode.value for mode in cls)
        )


class SourceLine(BaseModel):
    number: int  # 1-indexed
    text: str


class ViewSnapshot(BaseModel):
    """Rendered: tree only. Source: lines and spans. Split: all three."""

    model_config = ConfigDict(frozen=True)

    mode: ViewMode
    tree: Optional[DocumentTree] = None
    lines: list[SourceLine] = Field(default_factory=list)
    spans: list[HighlightSpan] = Field(default_factory=list)


def source_lines(text: str) -> list[SourceLine]:
    return [SourceLine(number=i, text=line) for i, line in enumerate(text.splitlines(), start=1)]


class SnapshotBuilder:
    """Assembles a ViewSnapshot for a document's current mode.

    Args:
        config: mdview configuration.
        image_cache: Cache handed to the model builder for rendered and split
            snapshots. Source snapshots never touch it.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        image_cache: Optional[ImageAssetCache] = None,
    ):
        self.config = config or Config.default()
        self.image_cache = image_cache

    def build(
        self,
        document: MarkdownDocument,
        mode: Optional[Union[str, ViewMode]] = None,
    ) -> ViewSnapshot:
        """Build the snapshot for ``mode``, or the document's own mode."""
        selected = ViewMode.parse(mode) if mode is not None else document.mode
        return self.build_text(document.source, selected, base_path=document.base_path)

    def build_text(
        self,
        text: str,
        mode: Union[str, ViewMode],
        base_path: Optional[Path] = None,
    ) -> ViewSnapshot:
        mode = ViewMode.parse(mode)
        logger.debug("Building %s snapshot", mode.value)

        if mode is ViewMode.SOURCE:
            return ViewSnapshot(mode=mode, lines=source_lines(text), spans=highlight_source(text))

        tree = self._render(text, base_path)
        if mode is ViewMode.RENDERED:
            return ViewSnapshot(mode=mode, tree=tree)
        return ViewSnapshot(
            mode=mode,
            tree=tree,
            lines=source_lines(text),
            spans=highlight_source(text),
        )

    def _render(self, text: str, base_path: Optional[Path]) -> DocumentTree:
        from mdview.document import fallback_tree

        tree = convert_markdown(text, self.config, image_cache=self.image_cache, base_path=base_path)
        return fallback_tree(tree, text)
