"""YAML-backed configuration for mdview."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from mdview.exceptions import ConfigError


@dataclass
class ParserConfig:
    """Event producer selection and enabled Markdown extensions."""

    engine: str = "markdown-it"
    tables: bool = True
    strikethrough: bool = True
    tasklists: bool = True
    footnotes: bool = True
    math: bool = True
    superscript: bool = True
    subscript: bool = True


@dataclass
class StyleConfig:
    """Run styling applied while building the tree."""

    code_font_family: str = "Cascadia Mono"
    code_background: str = "#F2F2F2"
    link_color: str = "#0563C1"
    math_font_family: str = "Cambria Math"


@dataclass
class ImageConfig:
    """Image asset resolution settings."""

    fallback_width: float = 320.0
    fallback_height: float = 180.0
    max_workers: int = 4
    remote_schemes: list[str] = field(
        default_factory=lambda: ["http://", "https://", "ftp://", "//"]
    )
    poll_interval_seconds: float = 0.02
    poll_timeout_seconds: float = 5.0


@dataclass
class ViewConfig:
    """View snapshot settings."""

    default_mode: str = "rendered"


@dataclass
class Config:
    """Top-level mdview configuration."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    view: ViewConfig = field(default_factory=ViewConfig)
    verbose: bool = False

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        """Load configuration from a YAML file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text) or {}
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path}")
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}")

        return cls._from_dict(data)

    @classmethod
    def from_yaml_string(cls, text: str) -> Config:
        """Load configuration from a YAML string."""
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML: {exc}")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> Config:
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")

        parser_data = data.get("parser") or {}
        style_data = data.get("style") or {}
        image_data = data.get("image") or {}
        view_data = data.get("view") or {}

        config = cls(
            parser=ParserConfig(**_known(parser_data, ParserConfig)),
            style=StyleConfig(**_known(style_data, StyleConfig)),
            image=ImageConfig(**_known(image_data, ImageConfig)),
            view=ViewConfig(**_known(view_data, ViewConfig)),
            verbose=bool(data.get("verbose", False)),
        )
        if config.image.max_workers < 1:
            raise ConfigError(
                f"image.max_workers must be at least 1, got {config.image.max_workers}"
            )
        return config

    @classmethod
    def default(cls) -> Config:
        """Return the default configuration."""
        return cls()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Config:
        """Load config from path, or return defaults if path is None."""
        if path is None:
            return cls.default()
        return cls.from_yaml(path)


def _known(section: dict, section_cls: type) -> dict:
    if not isinstance(section, dict):
        raise ConfigError(f"Config section for {section_cls.__name__} must be a mapping")
    return {k: v for k, v in section.items() if k in section_cls.__dataclass_fields__}
