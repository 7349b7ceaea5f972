"""Event stream to document tree conversion."""

from mdview.builder.model_builder import ModelBuilder, convert_markdown
from mdview.builder.styles import StyleAccumulator

__all__ = ["ModelBuilder", "StyleAccumulator", "convert_markdown"]
