"""Pydantic models for the renderer-agnostic document tree.

The tree is a flat, source-ordered sequence of blocks. Lists, tables and
block quotes own nested block content; paragraphs and headings own styled
runs. This is the contract between the model builder and every consumer
(views, exporters, reports).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Inline formatting
# ---------------------------------------------------------------------------


class RunStyle(BaseModel):
    """Resolved style snapshot for one run of inline text."""

    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    superscript: bool = False
    subscript: bool = False
    font_family: Optional[str] = None
    color: Optional[str] = None  # "#RRGGBB"
    background: Optional[str] = None
    link: Optional[str] = None


class Run(BaseModel):
    """A contiguous span of inline text with one style."""

    model_config = ConfigDict(frozen=True)

    text: str
    style: RunStyle = Field(default_factory=RunStyle)


def runs_text(runs: list[Run]) -> str:
    """Concatenate run texts, discarding styling."""
    return "".join(run.text for run in runs)


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


class ListKind(str, Enum):
    BULLET = "bullet"
    NUMBERED = "numbered"
    CHECKBOX = "checkbox"


class ListItem(BaseModel):
    """One list entry owning nested block content."""

    id: int
    blocks: list[Block] = Field(default_factory=list)
    checked: Optional[bool] = None  # set only for checkbox lists

    @property
    def text(self) -> str:
        return "\n".join(_block_text(b) for b in self.blocks if _block_text(b))


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TableCell(BaseModel):
    """One cell; spans are always 1 (merged cells are not modeled)."""

    blocks: list[Block] = Field(default_factory=list)
    row_span: int = 1
    col_span: int = 1

    @property
    def text(self) -> str:
        return " ".join(_block_text(b) for b in self.blocks if _block_text(b))


class TableRow(BaseModel):
    cells: list[TableCell] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Block types (discriminated union via `type` field)
# ---------------------------------------------------------------------------


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    id: int
    runs: list[Run] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return runs_text(self.runs)


class HeadingBlock(BaseModel):
    type: Literal["heading"] = "heading"
    id: int
    level: int = Field(ge=1, le=6)
    runs: list[Run] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return runs_text(self.runs)


class ListBlock(BaseModel):
    type: Literal["list"] = "list"
    id: int
    kind: ListKind = ListKind.BULLET
    start_number: int = 1
    items: list[ListItem] = Field(default_factory=list)


class TableBlock(BaseModel):
    type: Literal["table"] = "table"
    id: int
    rows: list[TableRow] = Field(default_factory=list)
    column_widths: list[float] = Field(default_factory=list)
    alignments: list[str] = Field(default_factory=list)
    header_row: bool = False

    @property
    def num_cols(self) -> int:
        return len(self.column_widths)

    @property
    def data_rows(self) -> list[TableRow]:
        return self.rows[1:] if self.header_row else list(self.rows)


class CodeBlock(BaseModel):
    type: Literal["code"] = "code"
    id: int
    language: Optional[str] = None
    code: str = ""


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    id: int
    key: str  # literal reference string, also the image cache key
    alt_text: str = ""
    title: Optional[str] = None
    width: float
    height: float


class BlockQuoteBlock(BaseModel):
    type: Literal["block_quote"] = "block_quote"
    id: int
    blocks: list[Block] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(_block_text(b) for b in self.blocks)


class HorizontalRuleBlock(BaseModel):
    type: Literal["horizontal_rule"] = "horizontal_rule"
    id: int


class PageBreakBlock(BaseModel):
    type: Literal["page_break"] = "page_break"
    id: int


Block = Annotated[
    Union[
        ParagraphBlock,
        HeadingBlock,
        ListBlock,
        TableBlock,
        CodeBlock,
        ImageBlock,
        BlockQuoteBlock,
        HorizontalRuleBlock,
        PageBreakBlock,
    ],
    Field(discriminator="type"),
]

# Rebuild the container models now that Block is defined (recursive reference)
ListItem.model_rebuild()
ListBlock.model_rebuild()
TableCell.model_rebuild()
TableRow.model_rebuild()
TableBlock.model_rebuild()
BlockQuoteBlock.model_rebuild()


def _block_text(block: BaseModel) -> str:
    if isinstance(block, (ParagraphBlock, HeadingBlock)):
        return block.text
    if isinstance(block, CodeBlock):
        return block.code
    if isinstance(block, ListBlock):
        return "\n".join(item.text for item in block.items)
    if isinstance(block, BlockQuoteBlock):
        return block.text
    if isinstance(block, ImageBlock):
        return block.alt_text
    return ""


def iter_blocks(blocks: list[Block]) -> Iterator[Block]:
    """Walk blocks depth-first in document order (parents before children)."""
    for block in blocks:
        yield block
        if isinstance(block, ListBlock):
            for item in block.items:
                yield from iter_blocks(item.blocks)
        elif isinstance(block, TableBlock):
            for row in block.rows:
                for cell in row.cells:
                    yield from iter_blocks(cell.blocks)
        elif isinstance(block, BlockQuoteBlock):
            yield from iter_blocks(block.blocks)


# ---------------------------------------------------------------------------
# Image assets (cache entries, separate lifecycle from blocks)
# ---------------------------------------------------------------------------


class AssetStatus(str, Enum):
    PLACEHOLDER = "placeholder"
    READY = "ready"
    FAILED = "failed"


class ImageAsset(BaseModel):
    """Resolution state for one image reference string."""

    reference: str
    alt_text: str = ""
    status: AssetStatus = AssetStatus.PLACEHOLDER
    width: Optional[int] = None  # populated only when READY
    height: Optional[int] = None
    resolved_path: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Top-level tree
# ---------------------------------------------------------------------------


class DocumentMetadata(BaseModel):
    source_file: str = ""
    title: str = ""
    parser: str = ""
    parser_version: str = ""


class DocumentTree(BaseModel):
    """The complete block tree for one conversion pass."""

    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    body: list[Block] = Field(default_factory=list)

    def walk(self) -> Iterator[Block]:
        """Iterate every block, nested ones included, in document order."""
        return iter_blocks(self.body)

    def headings(self) -> list[HeadingBlock]:
        return [b for b in self.body if isinstance(b, HeadingBlock)]

    def to_json(self, **kwargs) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> DocumentTree:
        """Deserialize from JSON string."""
        return cls.model_validate_json(json_str)
