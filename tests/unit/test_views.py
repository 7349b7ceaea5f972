"""Tests for the source highlighter, outline extractor and view snapshots."""

import pytest

from mdview.document import MarkdownDocument
from mdview.exceptions import ConfigError
from mdview.views import (
    HighlightKind,
    SnapshotBuilder,
    ViewMode,
    extract_outline,
    highlight_source,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _kinds(text: str) -> set[HighlightKind]:
    return {span.kind for span in highlight_source(text)}


def _slices(text: str, kind: HighlightKind) -> list[str]:
    data = text.encode("utf-8")
    return [
        data[span.start:span.end].decode("utf-8")
        for span in highlight_source(text)
        if span.kind is kind
    ]


# ---------------------------------------------------------------------------
# Highlighter
# ---------------------------------------------------------------------------

class TestHighlighter:
    def test_empty_source(self):
        assert highlight_source("") == []

    def test_heading_line(self):
        assert _slices("# Title\ntext", HighlightKind.HEADING) == ["# Title"]

    def test_hash_without_space_is_not_heading(self):
        assert HighlightKind.HEADING not in _kinds("#hashtag")

    def test_line_kinds(self):
        assert _slices("> quoted", HighlightKind.QUOTE) == ["> quoted"]
        assert _slices("---", HighlightKind.RULE) == ["---"]
        assert _slices("| a | b |", HighlightKind.TABLE_ROW) == ["| a | b |"]

    def test_list_marker_covers_marker_only(self):
        text = "- one\n  12. two\n* three"
        assert _slices(text, HighlightKind.LIST_MARKER) == ["-", "12.", "*"]

    def test_inline_kinds(self):
        text = "some **bold** and _it_ with [a link](http://x) and <https://y>"
        assert _slices(text, HighlightKind.EMPHASIS) == ["**bold**", "_it_"]
        assert _slices(text, HighlightKind.LINK) == ["[a link](http://x)", "<https://y>"]

    def test_code_fence_spans_block(self):
        text = "before\n```py\nx = 1\n```\nafter"
        assert _slices(text, HighlightKind.CODE_FENCE) == ["```py\nx = 1\n```"]

    def test_unclosed_fence_runs_to_end(self):
        text = "~~~\ncode\n"
        assert _slices(text, HighlightKind.CODE_FENCE) == ["~~~\ncode"]

    def test_heading_inside_fence_still_flagged(self):
        kinds = _kinds("```\n# not really\n```")
        assert HighlightKind.HEADING in kinds
        assert HighlightKind.CODE_FENCE in kinds

    def test_offsets_are_utf8_bytes(self):
        text = "é\n# Ü"
        (span,) = [s for s in highlight_source(text) if s.kind is HighlightKind.HEADING]
        assert span.start == len("é\n".encode("utf-8"))
        assert span.end == len(text.encode("utf-8"))

    def test_crlf_line_endings(self):
        text = "# A\r\n> b\r\n"
        assert _slices(text, HighlightKind.HEADING) == ["# A"]
        assert _slices(text, HighlightKind.QUOTE) == ["> b"]

    def test_overlapping_spans_kept(self):
        # a table row containing emphasis yields both spans
        assert {HighlightKind.TABLE_ROW, HighlightKind.EMPHASIS} <= _kinds("| **x** |")


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------

class TestOutline:
    def test_flat_levels(self):
        entries = extract_outline("# A\n## B\n# C")
        assert [e.level for e in entries] == [1, 2, 1]
        assert [e.title for e in entries] == ["A", "B", "C"]

    def test_block_ids_match_tree(self):
        entries = extract_outline("# A\n\ntext\n\n### D")
        assert [e.block_id for e in entries] == [1, 3]

    def test_title_discards_styling(self):
        (entry,) = extract_outline("## **Bold** and `code`")
        assert entry.title == "Bold and code"

    def test_no_headings(self):
        assert extract_outline("just text") == []

    def test_deep_heading_clamped(self):
        (entry,) = extract_outline("######## Deep")
        assert entry.level == 6


# ---------------------------------------------------------------------------
# View modes and snapshots
# ---------------------------------------------------------------------------

class TestViewMode:
    @pytest.mark.parametrize("value,mode", [
        ("rendered", ViewMode.RENDERED),
        ("SOURCE", ViewMode.SOURCE),
        (" Split ", ViewMode.SPLIT),
        (ViewMode.SPLIT, ViewMode.SPLIT),
    ])
    def test_parse(self, value, mode):
        assert ViewMode.parse(value) is mode

    def test_unknown_mode_raises(self):
        with pytest.raises(ConfigError, match="Unknown view mode"):
            ViewMode.parse("preview")


class TestSnapshotBuilder:
    SOURCE = "# Title\n\nBody *text*\n\n- item\n"

    def test_rendered_snapshot(self):
        snap = SnapshotBuilder().build(MarkdownDocument(self.SOURCE, mode="rendered"))
        assert snap.mode is ViewMode.RENDERED
        assert snap.tree is not None
        assert snap.lines == [] and snap.spans == []

    def test_source_snapshot_has_no_tree(self):
        snap = SnapshotBuilder().build(MarkdownDocument(self.SOURCE, mode="source"))
        assert snap.tree is None
        assert snap.lines[0].number == 1
        assert snap.lines[0].text == "# Title"
        assert len(snap.lines) == len(self.SOURCE.splitlines())
        assert snap.spans

    def test_split_matches_rendered(self):
        document = MarkdownDocument(self.SOURCE)
        builder = SnapshotBuilder()
        rendered = builder.build(document, ViewMode.RENDERED)
        split = builder.build(document, "split")
        assert split.lines
        assert split.spans
        assert split.tree == rendered.tree

    def test_mode_switch_does_not_touch_source(self):
        document = MarkdownDocument(self.SOURCE)
        document.set_mode("source")
        SnapshotBuilder().build(document)
        document.set_mode(ViewMode.SPLIT)
        SnapshotBuilder().build(document)
        assert document.source == self.SOURCE
        assert document.mode is ViewMode.SPLIT

    def test_empty_source(self):
        snap = SnapshotBuilder().build(MarkdownDocument(""), "split")
        assert snap.lines == []
        assert snap.tree.body == []
