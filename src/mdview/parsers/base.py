"""Abstract base class for Markdown event producers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from mdview.config import Config
from mdview.parsers.events import Event


class BaseEventSource(ABC):
    """Base class that all event producer implementations must extend."""

    def __init__(self, config: Config | None = None):
        self.config = config or Config.default()

    @abstractmethod
    def events(self, text: str) -> Iterator[Event]:
        """Tokenize Markdown source into a flat, sequential event stream.

        Args:
            text: The full source text buffer.

        Returns:
            An iterator of events with matched open/close pairs.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the engine name (e.g. 'markdown-it')."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Return the engine version string."""
