"""Conversion report: statistics and diagnostics from a conversion run."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mdview.assets.image_cache import ImageAssetCache
    from mdview.ir.schema import DocumentTree


@dataclass
class ConversionReport:
    """Summary of one Markdown-to-tree conversion."""

    # Source info
    source_file: str = ""
    title: str = ""
    source_lines: int = 0

    # Timing
    load_time_seconds: float = 0.0
    convert_time_seconds: float = 0.0
    total_time_seconds: float = 0.0

    # Block counts (nested blocks included)
    block_count: int = 0
    blocks_by_type: dict[str, int] = field(default_factory=dict)

    # Heading level distribution: {level: count}
    headings_by_level: dict[int, int] = field(default_factory=dict)

    # Image asset statuses: {status: count}
    images_by_status: dict[str, int] = field(default_factory=dict)

    # Warnings collected during conversion
    warnings: list[str] = field(default_factory=list)

    @property
    def heading_count(self) -> int:
        return sum(self.headings_by_level.values())

    def count(self, block_type: str) -> int:
        return self.blocks_by_type.get(block_type, 0)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self._to_dict(), indent=indent)

    def _to_dict(self) -> dict:
        """Convert to a plain dict for JSON serialization."""
        return {
            "source_file": self.source_file,
            "title": self.title,
            "source_lines": self.source_lines,
            "timing": {
                "load_seconds": round(self.load_time_seconds, 3),
                "convert_seconds": round(self.convert_time_seconds, 3),
                "total_seconds": round(self.total_time_seconds, 3),
            },
            "block_count": self.block_count,
            "blocks_by_type": dict(sorted(self.blocks_by_type.items())),
            "headings_by_level": {
                str(k): v for k, v in sorted(self.headings_by_level.items())
            },
            "images_by_status": dict(sorted(self.images_by_status.items())),
            "warnings": self.warnings,
        }

    @classmethod
    def from_tree(
        cls, tree: "DocumentTree", cache: Optional["ImageAssetCache"] = None
    ) -> ConversionReport:
        """Build a report by walking a tree and, optionally, its image cache."""
        report = cls(
            source_file=tree.metadata.source_file,
            title=tree.metadata.title,
        )
        _walk_blocks(tree, report)
        if cache is not None:
            _collect_assets(cache, report)
        return report


def _walk_blocks(tree: "DocumentTree", report: ConversionReport) -> None:
    """Count every block, recursing into items, cells and quotes."""
    from mdview.ir.schema import HeadingBlock

    for block in tree.walk():
        report.block_count += 1
        report.blocks_by_type[block.type] = report.blocks_by_type.get(block.type, 0) + 1
        if isinstance(block, HeadingBlock):
            report.headings_by_level[block.level] = (
                report.headings_by_level.get(block.level, 0) + 1
            )


def _collect_assets(cache: "ImageAssetCache", report: ConversionReport) -> None:
    from mdview.ir.schema import AssetStatus

    for reference, asset in cache.assets().items():
        status = asset.status.value
        report.images_by_status[status] = report.images_by_status.get(status, 0) + 1
        if asset.status is AssetStatus.FAILED:
            report.warnings.append(f"Image '{reference}' unavailable: {asset.error}")
