"""Outline, highlighting and view snapshots."""

from mdview.views.highlighter import HighlightKind, HighlightSpan, highlight_source
from mdview.views.outline import OutlineEntry, extract_outline, outline_from_tree
from mdview.views.snapshot import SnapshotBuilder, SourceLine, ViewMode, ViewSnapshot

__all__ = [
    "HighlightKind",
    "HighlightSpan",
    "OutlineEntry",
    "SnapshotBuilder",
    "SourceLine",
    "ViewMode",
    "ViewSnapshot",
    "extract_outline",
    "highlight_source",
    "outline_from_tree",
]
