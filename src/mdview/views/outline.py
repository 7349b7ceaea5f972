"""Flat heading outline for navigation panels."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from mdview.builder.model_builder import convert_markdown
from mdview.config import Config
from mdview.ir.schema import DocumentTree


class OutlineEntry(BaseModel):
    block_id: int
    level: int
    title: str


def outline_from_tree(tree: DocumentTree) -> list[OutlineEntry]:
    """Project the heading blocks of an existing tree, in document order."""
    return [
        OutlineEntry(block_id=heading.id, level=heading.level, title=heading.text)
        for heading in tree.headings()
    ]


def extract_outline(text: str, config: Optional[Config] = None) -> list[OutlineEntry]:
    """Convert ``text`` and return one entry per heading.

    No hierarchy is built: a level-1 and a level-3 heading are siblings in the
    returned list. Images are not resolved during this pass.
    """
    return outline_from_tree(convert_markdown(text, config))
