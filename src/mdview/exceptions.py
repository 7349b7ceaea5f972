"""Exception hierarchy for mdview."""


class MdViewError(Exception):
    """Base exception for all mdview errors."""


class ConfigError(MdViewError):
    """Raised when configuration is invalid or missing."""


class LoadError(MdViewError):
    """Raised when a Markdown source file cannot be read."""


class ExportError(MdViewError):
    """Raised when a document tree cannot be serialized or written."""


class ImageResolveError(MdViewError):
    """Raised inside a resolution worker when an image cannot be probed.

    Never escapes the image cache: poll() turns it into a Failed asset.
    """
