"""Document tree serializers."""

from mdview.exporters.text import save_with_format, to_html, to_markdown, to_plain_text

__all__ = ["save_with_format", "to_html", "to_markdown", "to_plain_text"]
