"""An open Markdown document: source text, view mode and base path."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from mdview.builder.model_builder import convert_markdown
from mdview.config import Config
from mdview.exceptions import LoadError
from mdview.ir.schema import DocumentTree, ParagraphBlock, Run
from mdview.views.snapshot import ViewMode

if TYPE_CHECKING:
    from mdview.assets.image_cache import ImageAssetCache

logger = logging.getLogger(__name__)


class MarkdownDocument:
    """Holds the full source text of one document.

    The source is never modified by mode switches or conversions; every
    conversion is a fresh pass over it.
    """

    def __init__(
        self,
        source: str,
        mode: Union[str, ViewMode] = ViewMode.RENDERED,
        base_path: Optional[Path] = None,
        source_file: str = "",
    ):
        self.source = source
        self.mode = ViewMode.parse(mode)
        self.base_path = Path(base_path) if base_path is not None else None
        self.source_file = source_file

    @classmethod
    def load_from_path(
        cls,
        path: Path,
        mode: Union[str, ViewMode] = ViewMode.RENDERED,
    ) -> MarkdownDocument:
        """Read a UTF-8 Markdown file; relative images resolve beside it.

        Raises:
            LoadError: If the file is missing or cannot be decoded.
        """
        path = Path(path)
        try:
            source = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise LoadError(f"Markdown file not found: {path}")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"Failed to read {path}: {exc}") from exc

        logger.debug("Loaded %s (%d chars)", path, len(source))
        return cls(source, mode=mode, base_path=path.parent, source_file=str(path))

    def set_mode(self, mode: Union[str, ViewMode]) -> ViewMode:
        self.mode = ViewMode.parse(mode)
        return self.mode

    @property
    def lines(self) -> list[str]:
        return self.source.splitlines()

    def to_document_tree(
        self,
        config: Optional[Config] = None,
        image_cache: Optional[ImageAssetCache] = None,
    ) -> DocumentTree:
        """Convert the source into a fresh DocumentTree."""
        tree = convert_markdown(
            self.source, config, image_cache=image_cache, base_path=self.base_path
        )
        tree.metadata.source_file = self.source_file
        return fallback_tree(tree, self.source)


def fallback_tree(tree: DocumentTree, source: str) -> DocumentTree:
    """Show a non-empty source verbatim when it produced no blocks."""
    if tree.body or not source:
        return tree
    tree.body.append(ParagraphBlock(id=1, runs=[Run(text=source)]))
    return tree
