"""Text-based serializers for DocumentTree.

Each serializer walks the tree read-only. ``save_with_format`` picks one by
file extension; binary formats are not supported.
"""

from __future__ import annotations

import logging
from html import escape
from pathlib import Path

from mdview.exceptions import ExportError
from mdview.ir.schema import (
    Block,
    BlockQuoteBlock,
    CodeBlock,
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
    TableBlock,
    TableCell,
)

logger = logging.getLogger(__name__)

PAGE_BREAK_CHAR = "\f"

_HTML_STYLE = (
    "body{font-family:Segoe UI,Arial,sans-serif;max-width:840px;margin:24px auto;"
    "line-height:1.4}table{border-collapse:collapse}td,th{border:1px solid #ccc;"
    "padding:6px}blockquote{border-left:3px solid #ccc;margin-left:0;padding-left:12px}"
)


def _item_marker(block: ListBlock, index: int, item: ListItem, markdown: bool) -> str:
    if block.kind is ListKind.NUMBERED:
        return f"{block.start_number + index}. "
    if block.kind is ListKind.CHECKBOX:
        box = "[x] " if item.checked else "[ ] "
        return "- " + box if markdown else box
    return "- "


# ---------------------------------------------------------------------------
# Plain text
# ---------------------------------------------------------------------------


def to_plain_text(tree: DocumentTree) -> str:
    """Render the tree as unstyled text, one block per line group."""
    lines: list[str] = []
    for block in tree.body:
        _plain_block(block, lines, indent="")
    return "".join(line + "\n" for line in lines)


def _plain_block(block: Block, lines: list[str], indent: str) -> None:
    if isinstance(block, (ParagraphBlock, HeadingBlock)):
        lines.append(indent + block.text)
    elif isinstance(block, CodeBlock):
        lines.extend(indent + line for line in block.code.split("\n"))
    elif isinstance(block, ListBlock):
        for index, item in enumerate(block.items):
            marker = _item_marker(block, index, item, markdown=False)
            lines.append(indent + marker + _first_paragraph(item.blocks))
            for child in item.blocks:
                if not isinstance(child, ParagraphBlock):
                    _plain_block(child, lines, indent + "  ")
    elif isinstance(block, TableBlock):
        for row in block.rows:
            lines.append(indent + "\t".join(cell.text for cell in row.cells))
    elif isinstance(block, HorizontalRuleBlock):
        lines.append(indent + "---")
    elif isinstance(block, PageBreakBlock):
        lines.extend(["", PAGE_BREAK_CHAR])
    elif isinstance(block, ImageBlock):
        lines.append(f"{indent}[Image: {block.alt_text}]")
    elif isinstance(block, BlockQuoteBlock):
        for child in block.blocks:
            for line in _block_lines(child):
                lines.append(f"{indent}> {line}")


def _first_paragraph(blocks: list[Block]) -> str:
    return " ".join(b.text for b in blocks if isinstance(b, ParagraphBlock))


def _block_lines(block: Block) -> list[str]:
    lines: list[str] = []
    _plain_block(block, lines, indent="")
    return lines


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def to_markdown(tree: DocumentTree) -> str:
    """Re-serialize the tree as CommonMark with GFM tables and task lists."""
    chunks = [_markdown_block(block, indent="") for block in tree.body]
    return "".join(chunk + "\n\n" for chunk in chunks if chunk)


def _markdown_runs(runs: list[Run]) -> str:
    parts = []
    for run in runs:
        text = run.text
        style = run.style
        if not text.strip() or text == "\n":
            parts.append(text)
            continue
        if style.font_family and style.background:
            text = f"`{text}`"
        if style.bold:
            text = f"**{text}**"
        if style.italic and not style.font_family:
            text = f"*{text}*"
        if style.strikethrough:
            text = f"~~{text}~~"
        if style.link:
            text = f"[{text}]({style.link})"
        parts.append(text)
    return "".join(parts)


def _markdown_block(block: Block, indent: str) -> str:
    if isinstance(block, HeadingBlock):
        return "#" * block.level + " " + _markdown_runs(block.runs)
    if isinstance(block, ParagraphBlock):
        return indent + _markdown_runs(block.runs).replace("\n", "\n" + indent)
    if isinstance(block, CodeBlock):
        if block.language == "math":
            return f"{indent}$$\n{block.code}\n{indent}$$"
        return f"{indent}```{block.language or ''}\n{block.code}\n{indent}```"
    if isinstance(block, HorizontalRuleBlock):
        return "---"
    if isinstance(block, PageBreakBlock):
        return "\\pagebreak"
    if isinstance(block, ImageBlock):
        title = f' "{block.title}"' if block.title else ""
        return f"{indent}![{block.alt_text}]({block.key}{title})"
    if isinstance(block, ListBlock):
        lines = []
        for index, item in enumerate(block.items):
            marker = _item_marker(block, index, item, markdown=True)
            body = [_markdown_block(child, indent + "  ").lstrip() for child in item.blocks[:1]]
            lines.append(indent + marker + "".join(body))
            for child in item.blocks[1:]:
                lines.append(_markdown_block(child, indent + "  "))
        return "\n".join(lines)
    if isinstance(block, TableBlock):
        return _markdown_table(block)
    if isinstance(block, BlockQuoteBlock):
        text = "\n".join(_markdown_block(child, "") for child in block.blocks)
        return "\n".join("> " + line for line in text.split("\n"))
    return ""


_ALIGN_RULES = {"left": ":---", "center": ":---:", "right": "---:"}


def _markdown_table(block: TableBlock) -> str:
    if not block.rows:
        return ""
    columns = max(block.num_cols, max(len(row.cells) for row in block.rows))

    def row_line(cells: list[TableCell]) -> str:
        texts = [cell.text.replace("|", "\\|") for cell in cells]
        texts += [""] * (columns - len(texts))
        return "| " + " | ".join(texts) + " |"

    aligns = list(block.alignments) + ["none"] * (columns - len(block.alignments))
    rule = "| " + " | ".join(_ALIGN_RULES.get(a, "---") for a in aligns[:columns]) + " |"

    if block.header_row:
        lines = [row_line(block.rows[0].cells), rule]
    else:
        lines = [row_line([]), rule]
    lines.extend(row_line(row.cells) for row in block.data_rows)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def to_html(tree: DocumentTree) -> str:
    """Render a standalone HTML5 page."""
    body = "".join(_html_block(block) for block in tree.body)
    title = escape(tree.metadata.title or "Document")
    return (
        f'<!doctype html><html><head><meta charset="utf-8"><title>{title}</title>'
        f"<style>{_HTML_STYLE}</style></head><body>{body}</body></html>"
    )


def _html_runs(runs: list[Run]) -> str:
    parts = []
    for run in runs:
        if run.text == "\n":
            parts.append("<br/>")
            continue
        text = escape(run.text)
        style = run.style
        if style.font_family and style.background:
            text = f"<code>{text}</code>"
        if style.bold:
            text = f"<strong>{text}</strong>"
        if style.italic:
            text = f"<em>{text}</em>"
        if style.strikethrough:
            text = f"<del>{text}</del>"
        if style.superscript:
            text = f"<sup>{text}</sup>"
        if style.subscript:
            text = f"<sub>{text}</sub>"
        if style.link:
            text = f'<a href="{escape(style.link)}">{text}</a>'
        elif style.underline:
            text = f"<u>{text}</u>"
        parts.append(text)
    return "".join(parts)


def _html_block(block: Block) -> str:
    if isinstance(block, HeadingBlock):
        return f"<h{block.level}>{_html_runs(block.runs)}</h{block.level}>"
    if isinstance(block, ParagraphBlock):
        return f"<p>{_html_runs(block.runs)}</p>"
    if isinstance(block, CodeBlock):
        lang = f' class="language-{escape(block.language)}"' if block.language else ""
        return f"<pre><code{lang}>{escape(block.code)}</code></pre>"
    if isinstance(block, HorizontalRuleBlock):
        return "<hr/>"
    if isinstance(block, PageBreakBlock):
        return '<div style="page-break-after: always"></div>'
    if isinstance(block, ImageBlock):
        return (
            f'<figure><img alt="{escape(block.alt_text)}" src="{escape(block.key)}" '
            f'width="{block.width:g}" height="{block.height:g}"/></figure>'
        )
    if isinstance(block, ListBlock):
        tag = "ol" if block.kind is ListKind.NUMBERED else "ul"
        start = f' start="{block.start_number}"' if tag == "ol" and block.start_number != 1 else ""
        items = []
        for item in block.items:
            box = ""
            if block.kind is ListKind.CHECKBOX:
                checked = " checked" if item.checked else ""
                box = f'<input type="checkbox" disabled{checked}/> '
            inner = "".join(_html_block(child) for child in item.blocks)
            items.append(f"<li>{box}{inner}</li>")
        return f"<{tag}{start}>{''.join(items)}</{tag}>"
    if isinstance(block, TableBlock):
        rows = []
        for index, row in enumerate(block.rows):
            cell_tag = "th" if block.header_row and index == 0 else "td"
            cells = "".join(
                f"<{cell_tag}>{escape(cell.text)}</{cell_tag}>" for cell in row.cells
            )
            rows.append(f"<tr>{cells}</tr>")
        return f"<table>{''.join(rows)}</table>"
    if isinstance(block, BlockQuoteBlock):
        return f"<blockquote>{''.join(_html_block(child) for child in block.blocks)}</blockquote>"
    return ""


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_SERIALIZERS = {
    ".txt": to_plain_text,
    ".md": to_markdown,
    ".markdown": to_markdown,
    ".html": to_html,
    ".htm": to_html,
}


def save_with_format(path: Path, tree: DocumentTree) -> Path:
    """Write the tree to ``path`` in the format named by its extension.

    Raises:
        ExportError: If the extension is not supported or the write fails.
    """
    path = Path(path)
    serializer = _SERIALIZERS.get(path.suffix.lower())
    if serializer is None:
        raise ExportError(
            f"Unsupported export format: '{path.suffix}'. Available: "
            + ", ".join(sorted(_SERIALIZERS))
        )

    logger.info("Exporting %s", path)
    try:
        path.write_text(serializer(tree), encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Failed to write {path}: {exc}") from exc
    return path
