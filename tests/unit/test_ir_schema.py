"""Tests for document tree models: serialization, validation, traversal."""

import json

import pytest
from pydantic import ValidationError

from mdview.ir import (
    AssetStatus,
    BlockQuoteBlock,
    CodeBlock,
    DocumentMetadata,
    DocumentTree,
    HeadingBlock,
    HorizontalRuleBlock,
    ImageAsset,
    ImageBlock,
    ListBlock,
    ListItem,
    ListKind,
    PageBreakBlock,
    ParagraphBlock,
    Run,
    RunStyle,
    TableBlock,
    TableCell,
    TableRow,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _para(block_id: int, text: str) -> ParagraphBlock:
    return ParagraphBlock(id=block_id, runs=[Run(text=text)])


def _sample_tree() -> DocumentTree:
    return DocumentTree(
        metadata=DocumentMetadata(source_file="notes.md", title="Notes", parser="markdown-it"),
        body=[
            HeadingBlock(id=1, level=1, runs=[Run(text="Notes")]),
            ParagraphBlock(
                id=2,
                runs=[Run(text="Some "), Run(text="bold", style=RunStyle(bold=True))],
            ),
            ListBlock(
                id=3,
                kind=ListKind.CHECKBOX,
                items=[
                    ListItem(id=4, blocks=[_para(5, "done")], checked=True),
                    ListItem(id=6, blocks=[_para(7, "todo")], checked=False),
                ],
            ),
            TableBlock(
                id=8,
                rows=[
                    TableRow(cells=[TableCell(blocks=[_para(9, "A")]), TableCell()]),
                    TableRow(cells=[TableCell(blocks=[_para(10, "1")]), TableCell()]),
                ],
                column_widths=[0.5, 0.5],
                alignments=["left", "none"],
                header_row=True,
            ),
            BlockQuoteBlock(id=11, blocks=[_para(12, "quoted")]),
            CodeBlock(id=13, language="python", code="print(1)"),
            ImageBlock(id=14, key="img.png", alt_text="pic", width=320, height=180),
            HorizontalRuleBlock(id=15),
            PageBreakBlock(id=16),
        ],
    )


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

class TestSerialization:
    def test_json_round_trip_preserves_variants(self):
        tree = _sample_tree()
        loaded = DocumentTree.from_json(tree.to_json())
        assert loaded == tree
        assert [b.type for b in loaded.body] == [
            "heading", "paragraph", "list", "table", "block_quote",
            "code", "image", "horizontal_rule", "page_break",
        ]

    def test_discriminator_in_json(self):
        data = json.loads(_sample_tree().to_json())
        assert data["body"][0]["type"] == "heading"
        assert data["body"][2]["items"][0]["blocks"][0]["type"] == "paragraph"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            DocumentTree.model_validate({"body": [{"type": "video", "id": 1}]})


# ---------------------------------------------------------------------------
# Validation and derived values
# ---------------------------------------------------------------------------

class TestBlocks:
    def test_heading_level_bounds(self):
        with pytest.raises(ValidationError):
            HeadingBlock(id=1, level=7)
        with pytest.raises(ValidationError):
            HeadingBlock(id=1, level=0)

    def test_text_properties_discard_style(self):
        tree = _sample_tree()
        assert tree.body[1].text == "Some bold"
        assert tree.body[2].items[0].text == "done"
        assert tree.body[4].text == "quoted"

    def test_table_columns_and_data_rows(self):
        table = _sample_tree().body[3]
        assert table.num_cols == 2
        assert len(table.data_rows) == 1
        assert table.data_rows[0].cells[0].text == "1"

    def test_table_without_header_has_all_rows_as_data(self):
        table = TableBlock(id=1, rows=[TableRow(), TableRow()])
        assert table.num_cols == 0
        assert len(table.data_rows) == 2

    def test_run_style_is_frozen(self):
        style = RunStyle(bold=True)
        with pytest.raises(ValidationError):
            style.bold = False


class TestTraversal:
    def test_walk_visits_nested_blocks_in_preorder(self):
        ids = [block.id for block in _sample_tree().walk()]
        assert ids == [1, 2, 3, 5, 7, 8, 9, 10, 11, 12, 13, 14, 15, 16]

    def test_headings_only_top_level(self):
        headings = _sample_tree().headings()
        assert [h.text for h in headings] == ["Notes"]


class TestImageAsset:
    def test_placeholder_by_default(self):
        asset = ImageAsset(reference="a.png")
        assert asset.status is AssetStatus.PLACEHOLDER
        assert asset.width is None and asset.height is None
