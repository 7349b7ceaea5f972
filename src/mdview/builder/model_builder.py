"""Event stream → DocumentTree state machine.

The builder consumes the event stream exactly once, left to right, with no
lookahead. Inline content is routed to the single context currently
accepting it; finished paragraphs and headings go to the first open
destination in the fixed order table cell, list item, block quote, tree.
Lists, tables and quotes are only attached to their parent when their
closing event arrives, so all of their children are final by then.

Structural anomalies (stray closers, events outside any context) are
absorbed silently: ``build`` is total and never raises for any event
sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Union

from mdview.builder.contexts import (
    CellBuilder,
    ContextStack,
    ItemBuilder,
    ListBuilder,
    QuoteBuilder,
    TableBuilder,
)
from mdview.builder.styles import STYLE_TAGS, StyleAccumulator
from mdview.config import Config
from mdview.ir.schema import (
    AssetStatus,
    Block,
    BlockQuoteBlock,
    CodeBlock,
    DocumentMetadata,
    DocumentTree,
    HeadingBlock,
    HorizontalRuleBlock,
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
from mdview.parsers.events import Event, EventKind, Tag

if TYPE_CHECKING:
    from mdview.assets.image_cache import ImageAssetCache

logger = logging.getLogger(__name__)

MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 6

_LINE_BREAK = "\n"

Sink = Union[ItemBuilder, CellBuilder, QuoteBuilder]


@dataclass
class _CodeCapture:
    language: Optional[str]
    parts: list[str] = field(default_factory=list)


@dataclass
class _ImageCapture:
    reference: str
    title: Optional[str]
    alt: list[str] = field(default_factory=list)
    inline: bool = False


def clamp_heading_level(level: Optional[int]) -> int:
    """Force a heading level into 1..6; a missing level counts as 1."""
    if level is None:
        return MIN_HEADING_LEVEL
    return max(MIN_HEADING_LEVEL, min(MAX_HEADING_LEVEL, level))


class ModelBuilder:
    """Builds one DocumentTree per call to :meth:`build`.

    Args:
        config: mdview configuration (styles, image fallback size).
        image_cache: Optional cache used to resolve image references. When
            omitted, image blocks carry the fallback size and no resolution
            work is started.
        base_path: Directory that relative image references resolve against.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        image_cache: Optional[ImageAssetCache] = None,
        base_path: Optional[Path] = None,
    ):
        self.config = config or Config.default()
        self.image_cache = image_cache
        self.base_path = base_path
        self.styles = StyleAccumulator(self.config.style)
        self._reset()

    def _reset(self) -> None:
        self._next_id = 1
        self._body: list[Block] = []
        self._contexts = ContextStack()
        self.styles.reset()
        self._paragraph: Optional[list[Run]] = None
        self._heading_level: Optional[int] = None
        self._heading_runs: list[Run] = []
        self._code: Optional[_CodeCapture] = None
        self._image: Optional[_ImageCapture] = None
        self._footnote_depth = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, events: Iterable[Event]) -> DocumentTree:
        """Consume a full event stream and return the finished tree."""
        self._reset()
        for event in events:
            self._dispatch(event)

        if len(self._contexts) or self._paragraph is not None or self._code is not None:
            logger.debug("Event stream ended with open contexts; discarding them")

        tree = DocumentTree(body=self._body)
        self._reset()
        return tree

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, event: Event) -> None:
        if self._footnote_depth and event.tag is not Tag.FOOTNOTE_DEFINITION:
            # definition bodies are not part of the inline flow
            return

        kind = event.kind
        if kind is EventKind.START:
            self._start(event)
        elif kind is EventKind.END:
            self._end(event.tag)
        elif kind is EventKind.TEXT:
            self._text(event.text)
        elif kind is EventKind.CODE:
            self._inline(self.styles.code_run(event.text))
        elif kind is EventKind.INLINE_MATH:
            self._inline(self.styles.math_run(event.text))
        elif kind in (EventKind.SOFT_BREAK, EventKind.HARD_BREAK):
            self._line_break()
        elif kind is EventKind.RULE:
            self._emit(lambda block_id: HorizontalRuleBlock(id=block_id))
        elif kind is EventKind.PAGE_BREAK:
            self._emit(lambda block_id: PageBreakBlock(id=block_id))
        elif kind is EventKind.DISPLAY_MATH:
            latex = event.text.strip()
            self._emit(lambda block_id: CodeBlock(id=block_id, language="math", code=latex))
        elif kind is EventKind.TASK_MARKER:
            current = self._contexts.current_list
            if current is not None:
                current.mark_task(bool(event.checked))
        elif kind is EventKind.FOOTNOTE_REFERENCE:
            self._inline(self.styles.footnote_run(event.label or "?"))
        else:
            logger.debug("Ignoring %s event", kind.value)

    def _start(self, event: Event) -> None:
        tag = event.tag
        if tag is Tag.PARAGRAPH:
            self._paragraph = []
        elif tag is Tag.HEADING:
            self._heading_level = clamp_heading_level(event.level)
            self._heading_runs = []
        elif tag is Tag.LIST:
            self._flush_sink()
            self._contexts.push(
                ListBuilder(
                    id=self._take_id(),
                    kind=ListKind.BULLET if event.start is None else ListKind.NUMBERED,
                    start_number=1 if event.start is None else event.start,
                )
            )
        elif tag is Tag.ITEM:
            current = self._contexts.current_list
            if current is None:
                logger.debug("Ignoring list item outside of a list")
                return
            if current.current is not None:
                self._finish_item(current)
            current.current = ItemBuilder(id=self._take_id())
        elif tag is Tag.CODE_BLOCK:
            self._code = _CodeCapture(language=event.language)
        elif tag is Tag.BLOCK_QUOTE:
            quote = self._contexts.quote
            if quote is not None:
                quote.depth += 1
            else:
                self._flush_sink()
                self._contexts.push(QuoteBuilder(id=self._take_id()))
        elif tag is Tag.TABLE:
            if self._contexts.table is not None:
                logger.debug("Ignoring nested table")
                return
            self._flush_sink()
            self._contexts.push(TableBuilder(id=self._take_id(), alignments=event.alignments))
        elif tag is Tag.TABLE_HEAD:
            table = self._contexts.table
            if table is not None:
                table.in_head = True
        elif tag is Tag.TABLE_ROW:
            table = self._contexts.table
            if table is not None:
                table.row = []
        elif tag is Tag.TABLE_CELL:
            table = self._contexts.table
            if table is not None:
                if table.row is None:
                    table.row = []
                table.current = CellBuilder()
        elif tag is Tag.IMAGE:
            if self._paragraph:
                # split the paragraph so the image keeps its source position
                runs, self._paragraph = self._paragraph, []
                self._route_runs(runs, lambda block_id: ParagraphBlock(id=block_id, runs=runs))
            self._image = _ImageCapture(
                reference=event.href or "",
                title=event.title,
                # headings hold runs only; the image stays inline as its alt text
                inline=self._heading_level is not None,
            )
        elif tag is Tag.FOOTNOTE_DEFINITION:
            self._footnote_depth += 1
        elif tag in STYLE_TAGS:
            self.styles.open(tag, href=event.href)

    def _end(self, tag: Optional[Tag]) -> None:
        if tag is Tag.PARAGRAPH:
            self._end_paragraph()
        elif tag is Tag.HEADING:
            self._end_heading()
        elif tag is Tag.LIST:
            self._end_list()
        elif tag is Tag.ITEM:
            current = self._contexts.current_list
            if current is None or current.current is None:
                logger.debug("Ignoring stray item close")
                return
            self._finish_item(current)
        elif tag is Tag.CODE_BLOCK:
            self._end_code_block()
        elif tag is Tag.BLOCK_QUOTE:
            self._end_quote()
        elif tag is Tag.TABLE:
            self._end_table()
        elif tag is Tag.TABLE_HEAD:
            table = self._contexts.table
            if table is not None:
                if table.row is not None:
                    self._finish_row(table)
                table.in_head = False
        elif tag is Tag.TABLE_ROW:
            table = self._contexts.table
            if table is not None and table.row is not None:
                self._finish_row(table)
        elif tag is Tag.TABLE_CELL:
            table = self._contexts.table
            if table is not None and table.current is not None:
                self._finish_cell(table)
        elif tag is Tag.IMAGE:
            self._end_image()
        elif tag is Tag.FOOTNOTE_DEFINITION:
            self._footnote_depth = max(0, self._footnote_depth - 1)
        elif tag in STYLE_TAGS:
            self.styles.close(tag)

    # ------------------------------------------------------------------
    # Inline content
    # ------------------------------------------------------------------

    def _text(self, text: str) -> None:
        if self._image is not None:
            self._image.alt.append(text)
        elif self._code is not None:
            self._code.parts.append(text)
        else:
            self._inline(self.styles.text_run(text))

    def _inline(self, run: Run) -> None:
        """Route a run to the one context currently accepting inline content."""
        if self._image is not None:
            self._image.alt.append(run.text)
            return
        if self._code is not None:
            self._code.parts.append(run.text)
            return
        if self._heading_level is not None:
            self._heading_runs.append(run)
            return
        if self._paragraph is not None:
            self._paragraph.append(run)
            return

        sink = self._contexts.current_cell or self._contexts.current_item or self._contexts.quote
        if sink is not None:
            sink.runs.append(run)
        else:
            logger.debug("Dropping inline run outside of any context: %r", run.text)

    def _line_break(self) -> None:
        if self._image is not None:
            return
        if self._code is not None:
            self._code.parts.append(_LINE_BREAK)
            return
        self._inline(self.styles.break_run())

    # ------------------------------------------------------------------
    # Closing handlers
    # ------------------------------------------------------------------

    def _end_paragraph(self) -> None:
        if self._paragraph is None:
            logger.debug("Ignoring stray paragraph close")
            return
        runs, self._paragraph = self._paragraph, None
        if runs:
            self._route_runs(runs, lambda block_id: ParagraphBlock(id=block_id, runs=runs))

    def _end_heading(self) -> None:
        if self._heading_level is None:
            logger.debug("Ignoring stray heading close")
            return
        level, runs = self._heading_level, self._heading_runs
        self._heading_level, self._heading_runs = None, []
        self._route_runs(runs, lambda block_id: HeadingBlock(id=block_id, level=level, runs=runs))

    def _end_list(self) -> None:
        current = self._contexts.pop(ListBuilder)
        if current is None:
            logger.debug("Ignoring stray list close")
            return
        if current.current is not None:
            self._finish_item(current)
        self._attach(current.build())

    def _finish_item(self, current: ListBuilder) -> None:
        item = current.current
        self._flush(item)
        current.finish_item(ListItem(id=item.id, blocks=item.blocks, checked=item.checked))

    def _end_code_block(self) -> None:
        if self._code is None:
            logger.debug("Ignoring stray code block close")
            return
        capture, self._code = self._code, None
        code = "".join(capture.parts)
        if code.endswith("\n"):
            code = code[:-1]
        self._emit(lambda block_id: CodeBlock(id=block_id, language=capture.language, code=code))

    def _end_quote(self) -> None:
        quote = self._contexts.quote
        if quote is None:
            logger.debug("Ignoring stray block quote close")
            return
        if quote.depth > 1:
            quote.depth -= 1
            return
        self._contexts.pop(QuoteBuilder)

        sink = self._block_sink()
        if isinstance(sink, (ItemBuilder, CellBuilder)):
            # quoted content already flowed into the enclosing container
            _append_runs(sink.runs, quote.runs)
            return
        paragraph = ParagraphBlock(id=self._take_id(), runs=quote.runs)
        self._attach(BlockQuoteBlock(id=quote.id, blocks=[paragraph]))

    def _end_table(self) -> None:
        table = self._contexts.pop(TableBuilder)
        if table is None:
            logger.debug("Ignoring stray table close")
            return
        if table.current is not None:
            self._finish_cell(table)
        if table.row is not None:
            self._finish_row(table)
        self._attach(table.build())

    def _finish_row(self, table: TableBuilder) -> None:
        if table.current is not None:
            self._finish_cell(table)
        table.rows.append(TableRow(cells=table.row or []))
        if table.in_head and len(table.rows) == 1:
            table.header_row = True
        table.row = None

    def _finish_cell(self, table: TableBuilder) -> None:
        cell = table.current
        self._flush(cell)
        if table.row is None:
            table.row = []
        table.row.append(TableCell(blocks=cell.blocks))
        table.current = None

    def _end_image(self) -> None:
        if self._image is None:
            logger.debug("Ignoring stray image close")
            return
        capture, self._image = self._image, None
        reference = capture.reference
        alt_text = "".join(capture.alt)
        if capture.inline:
            if alt_text:
                self._heading_runs.append(self.styles.text_run(alt_text))
            return
        width = self.config.image.fallback_width
        height = self.config.image.fallback_height

        if self.image_cache is not None:
            asset = self.image_cache.request(reference, alt_text, base_path=self.base_path)
            if asset.status is AssetStatus.READY and asset.width and asset.height:
                width, height = float(asset.width), float(asset.height)

        self._emit(
            lambda block_id: ImageBlock(
                id=block_id,
                key=reference,
                alt_text=alt_text,
                title=capture.title,
                width=width,
                height=height,
            )
        )

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def _take_id(self) -> int:
        block_id = self._next_id
        self._next_id += 1
        return block_id

    def _route_runs(self, runs: list[Run], make: Callable[[int], Block]) -> None:
        """Place a finished paragraph or heading: cell, item, quote, tree."""
        sink = self._contexts.current_cell or self._contexts.current_item or self._contexts.quote
        if sink is not None:
            _append_runs(sink.runs, runs)
        else:
            self._body.append(make(self._take_id()))

    def _block_sink(self) -> Optional[Sink]:
        """Innermost open container able to receive a block, if any."""
        for frame in self._contexts.frames():
            if isinstance(frame, ListBuilder) and frame.current is not None:
                return frame.current
            if isinstance(frame, TableBuilder) and frame.current is not None:
                return frame.current
            if isinstance(frame, QuoteBuilder):
                return frame
        return None

    def _flush(self, sink: Union[ItemBuilder, CellBuilder]) -> None:
        """Turn a container's pending runs into a paragraph block."""
        if sink.runs:
            sink.blocks.append(ParagraphBlock(id=self._take_id(), runs=sink.runs))
            sink.runs = []

    def _flush_sink(self) -> None:
        sink = self._block_sink()
        if isinstance(sink, (ItemBuilder, CellBuilder)):
            self._flush(sink)

    def _emit(self, make: Callable[[int], Block]) -> None:
        """Create a leaf block and place it in the innermost container."""
        sink = self._block_sink()
        if isinstance(sink, (ItemBuilder, CellBuilder)):
            self._flush(sink)
            sink.blocks.append(make(self._take_id()))
        elif isinstance(sink, QuoteBuilder):
            _append_runs(sink.runs, self._flatten(make(self._take_id())))
        else:
            self._body.append(make(self._take_id()))

    def _attach(self, block: Block) -> None:
        """Place a closed container block (list, table, quote)."""
        sink = self._block_sink()
        if isinstance(sink, (ItemBuilder, CellBuilder)):
            self._flush(sink)
            sink.blocks.append(block)
        elif isinstance(sink, QuoteBuilder):
            _append_runs(sink.runs, self._flatten(block))
        else:
            self._body.append(block)

    def _flatten(self, block: Block) -> list[Run]:
        """Inline runs standing in for a block inside a block quote."""
        if isinstance(block, (ParagraphBlock, HeadingBlock)):
            return list(block.runs)
        if isinstance(block, CodeBlock):
            style = RunStyle(
                font_family=self.config.style.code_font_family,
                background=self.config.style.code_background,
            )
            return [Run(text=block.code, style=style)] if block.code else []
        if isinstance(block, ImageBlock):
            return [Run(text=block.alt_text)] if block.alt_text else []
        if isinstance(block, ListBlock):
            runs: list[Run] = []
            for item in block.items:
                item_runs: list[Run] = []
                for child in item.blocks:
                    _append_runs(item_runs, self._flatten(child))
                _append_runs(runs, item_runs)
            return runs
        if isinstance(block, TableBlock):
            runs = []
            for row in block.rows:
                _append_runs(runs, [Run(text="\t".join(cell.text for cell in row.cells))])
            return runs
        if isinstance(block, BlockQuoteBlock):
            runs = []
            for child in block.blocks:
                _append_runs(runs, self._flatten(child))
            return runs
        return []


def _append_runs(buffer: list[Run], runs: list[Run]) -> None:
    """Append runs, separating them from earlier content by a line break."""
    if not runs:
        return
    if buffer:
        buffer.append(Run(text=_LINE_BREAK))
    buffer.extend(runs)


def convert_markdown(
    text: str,
    config: Optional[Config] = None,
    image_cache: Optional[ImageAssetCache] = None,
    base_path: Optional[Path] = None,
) -> DocumentTree:
    """Tokenize and convert Markdown source in one call."""
    from mdview.parsers.factory import create_event_source

    config = config or Config.default()
    source = create_event_source(config)
    builder = ModelBuilder(config, image_cache=image_cache, base_path=base_path)
    tree = builder.build(source.events(text))

    title = next((h.text for h in tree.headings() if h.level == 1), "")
    tree.metadata = DocumentMetadata(
        title=title,
        parser=source.name,
        parser_version=source.version,
    )
    return tree
