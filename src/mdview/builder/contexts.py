"""Per-container builders and the stack that holds them during a pass.

Lists nest to arbitrary depth; tables and block quotes are single-level (a
quote opened inside a quote only deepens the existing one). Each builder
buffers child content until its closing event, when the model builder turns
it into a finished block.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from mdview.ir.schema import (
    Block,
    ListBlock,
    ListItem,
    ListKind,
    Run,
    TableBlock,
    TableCell,
    TableRow,
)


@dataclass
class ItemBuilder:
    id: int
    blocks: list[Block] = field(default_factory=list)
    runs: list[Run] = field(default_factory=list)
    checked: Optional[bool] = None


@dataclass
class ListBuilder:
    id: int
    kind: ListKind = ListKind.BULLET
    start_number: int = 1
    items: list[ListItem] = field(default_factory=list)
    current: Optional[ItemBuilder] = None

    def mark_task(self, checked: bool) -> None:
        """A task marker turns the whole list into a checkbox list."""
        self.kind = ListKind.CHECKBOX
        if self.current is not None:
            self.current.checked = checked

    def finish_item(self, item: ListItem) -> None:
        self.items.append(item)
        self.current = None

    def build(self) -> ListBlock:
        items = self.items
        if self.kind is ListKind.CHECKBOX:
            items = [
                item if item.checked is not None else item.model_copy(update={"checked": False})
                for item in items
            ]
        return ListBlock(
            id=self.id,
            kind=self.kind,
            start_number=self.start_number,
            items=items,
        )


@dataclass
class CellBuilder:
    blocks: list[Block] = field(default_factory=list)
    runs: list[Run] = field(default_factory=list)


@dataclass
class TableBuilder:
    id: int
    alignments: tuple[str, ...] = ()
    rows: list[TableRow] = field(default_factory=list)
    row: Optional[list[TableCell]] = None
    current: Optional[CellBuilder] = None
    in_head: bool = False
    header_row: bool = False

    def column_count(self) -> int:
        first_row = len(self.rows[0].cells) if self.rows else 0
        return max(len(self.alignments), first_row)

    def build(self) -> TableBlock:
        columns = self.column_count()
        widths = [1.0 / columns] * columns if columns else []
        return TableBlock(
            id=self.id,
            rows=self.rows,
            column_widths=widths,
            alignments=list(self.alignments),
            header_row=self.header_row,
        )


@dataclass
class QuoteBuilder:
    id: int
    runs: list[Run] = field(default_factory=list)
    depth: int = 1


Frame = Union[ListBuilder, TableBuilder, QuoteBuilder]


class ContextStack:
    """Explicit stack of open container builders, innermost last."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, frame: Frame) -> None:
        self._frames.append(frame)

    def pop(self, kind: type) -> Optional[Frame]:
        """Remove and return the innermost open frame of the given type."""
        for index in range(len(self._frames) - 1, -1, -1):
            if isinstance(self._frames[index], kind):
                return self._frames.pop(index)
        return None

    def innermost(self, kind: type) -> Optional[Frame]:
        for frame in reversed(self._frames):
            if isinstance(frame, kind):
                return frame
        return None

    def frames(self) -> list[Frame]:
        """Open frames, innermost first."""
        return list(reversed(self._frames))

    @property
    def current_list(self) -> Optional[ListBuilder]:
        return self.innermost(ListBuilder)

    @property
    def current_item(self) -> Optional[ItemBuilder]:
        current = self.current_list
        return current.current if current is not None else None

    @property
    def table(self) -> Optional[TableBuilder]:
        return self.innermost(TableBuilder)

    @property
    def current_cell(self) -> Optional[CellBuilder]:
        table = self.table
        return table.current if table is not None else None

    @property
    def quote(self) -> Optional[QuoteBuilder]:
        return self.innermost(QuoteBuilder)
