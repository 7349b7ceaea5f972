"""Pipeline orchestrator: load → convert → (view | outline | export | report).

Owns the image asset cache for its lifetime so repeated conversions of the
same document reuse resolved images.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Union

from mdview.assets.image_cache import ImageAssetCache
from mdview.config import Config
from mdview.document import MarkdownDocument
from mdview.exporters.text import save_with_format
from mdview.ir.report import ConversionReport
from mdview.ir.schema import DocumentTree
from mdview.views.highlighter import HighlightSpan, highlight_source
from mdview.views.outline import OutlineEntry, outline_from_tree
from mdview.views.snapshot import SnapshotBuilder, ViewMode, ViewSnapshot

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates Markdown file → DocumentTree and the derived views."""

    def __init__(self, config: Config | None = None):
        self.config = config or Config.default()
        self.last_report: ConversionReport | None = None
        self._cache: ImageAssetCache | None = None

    @property
    def image_cache(self) -> ImageAssetCache:
        if self._cache is None:
            self._cache = ImageAssetCache(self.config)
        return self._cache

    def load(self, path: Path, mode: Union[str, ViewMode, None] = None) -> MarkdownDocument:
        """Read a Markdown file.

        Args:
            path: Input Markdown file.
            mode: View mode; defaults to ``view.default_mode`` from config.

        Returns:
            The loaded MarkdownDocument.

        Raises:
            LoadError: If the file cannot be read.
        """
        path = Path(path)
        logger.info("Loading %s", path)
        return MarkdownDocument.load_from_path(path, mode=mode or self.config.view.default_mode)

    def convert(
        self,
        path: Path,
        wait_images: bool = False,
        save_report: bool = False,
        report_path: Path | None = None,
    ) -> DocumentTree:
        """Full pipeline: Markdown file → DocumentTree.

        Args:
            path: Input Markdown file.
            wait_images: Poll the image cache until pending probes finish
                (bounded by ``image.poll_timeout_seconds``) and rebuild the
                tree so image blocks carry resolved sizes.
            save_report: Whether to save a conversion report JSON.
            report_path: Custom path for report JSON. Defaults to
                {input_stem}.report.json.

        Returns:
            The converted tree.
        """
        path = Path(path)

        t0 = time.monotonic()
        document = self.load(path)
        t1 = time.monotonic()

        logger.info("Converting %s", path)
        tree = document.to_document_tree(self.config, image_cache=self.image_cache)
        if wait_images and self.wait_for_images():
            tree = document.to_document_tree(self.config, image_cache=self.image_cache)
        t2 = time.monotonic()

        report = ConversionReport.from_tree(tree, self.image_cache)
        report.source_lines = len(document.lines)
        report.load_time_seconds = t1 - t0
        report.convert_time_seconds = t2 - t1
        report.total_time_seconds = t2 - t0
        self.last_report = report

        if save_report:
            if report_path is None:
                report_path = path.with_suffix(".report.json")
            Path(report_path).write_text(report.to_json(), encoding="utf-8")
            logger.info("Saved report to %s", report_path)

        return tree

    def snapshot(self, path: Path, mode: Union[str, ViewMode, None] = None) -> ViewSnapshot:
        """Build the view payload for a file in the given mode."""
        document = self.load(path, mode=mode)
        builder = SnapshotBuilder(self.config, image_cache=self.image_cache)
        return builder.build(document)

    def outline(self, path: Path) -> list[OutlineEntry]:
        """Flat heading outline of a file. No image probes are started."""
        document = self.load(path)
        return outline_from_tree(document.to_document_tree(self.config))

    def highlight(self, path: Path) -> list[HighlightSpan]:
        document = self.load(path)
        return highlight_source(document.source)

    def export(self, path: Path, output_path: Path, wait_images: bool = False) -> Path:
        """Convert a file and write it in the format named by ``output_path``.

        Raises:
            ExportError: If the output extension is unsupported.
        """
        tree = self.convert(path, wait_images=wait_images)
        return save_with_format(Path(output_path), tree)

    def wait_for_images(self, timeout: float | None = None) -> int:
        """Poll the image cache until idle or timed out; returns entries resolved."""
        if self._cache is None:
            return 0
        return self._cache.wait(timeout=timeout)

    @staticmethod
    def save_tree(tree: DocumentTree, path: Path) -> Path:
        """Save a tree to a JSON file."""
        path = Path(path)
        logger.info("Saving tree to %s", path)
        path.write_text(tree.to_json(), encoding="utf-8")
        return path

    def close(self) -> None:
        if self._cache is not None:
            self._cache.shutdown()
            self._cache = None

    def __enter__(self) -> Pipeline:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
