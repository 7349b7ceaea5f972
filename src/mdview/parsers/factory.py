"""Event producer factory: selects an implementation based on config."""

from __future__ import annotations

from mdview.config import Config
from mdview.exceptions import ConfigError
from mdview.parsers.base import BaseEventSource


def create_event_source(config: Config | None = None) -> BaseEventSource:
    """Create an event producer based on config.

    Args:
        config: mdview configuration. Uses default if None.

    Returns:
        A BaseEventSource implementation.

    Raises:
        ConfigError: If the configured engine is unknown.
    """
    config = config or Config.default()
    engine = config.parser.engine.lower()

    if engine in ("markdown-it", "markdown_it", "markdown-it-py"):
        from mdview.parsers.markdown_it_source import MarkdownItEventSource

        return MarkdownItEventSource(config)
    else:
        raise ConfigError(
            f"Unknown parser engine: '{engine}'. Available: markdown-it"
        )
