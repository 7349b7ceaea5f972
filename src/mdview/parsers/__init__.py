"""Markdown event producers."""

from mdview.parsers.base import BaseEventSource
from mdview.parsers.events import Event, EventKind, Tag
from mdview.parsers.factory import create_event_source

__all__ = ["BaseEventSource", "Event", "EventKind", "Tag", "create_event_source"]
