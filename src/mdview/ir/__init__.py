"""Document tree models."""

from mdview.ir.schema import (
    AssetStatus,
    Block,
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
    iter_blocks,
    runs_text,
)

__all__ = [
    "AssetStatus",
    "Block",
    "BlockQuoteBlock",
    "CodeBlock",
    "DocumentMetadata",
    "DocumentTree",
    "HeadingBlock",
    "HorizontalRuleBlock",
    "ImageAsset",
    "ImageBlock",
    "ListBlock",
    "ListItem",
    "ListKind",
    "PageBreakBlock",
    "ParagraphBlock",
    "Run",
    "RunStyle",
    "TableBlock",
    "TableCell",
    "TableRow",
    "iter_blocks",
    "runs_text",
]
