"""Tests for the inline style accumulator."""

from mdview.builder.styles import StyleAccumulator
from mdview.config import StyleConfig
from mdview.parsers.events import Tag


class TestStyleAccumulator:
    def test_plain_snapshot(self):
        style = StyleAccumulator().snapshot()
        assert not (style.bold or style.italic or style.underline)
        assert style.link is None

    def test_nested_depths(self):
        acc = StyleAccumulator()
        acc.open(Tag.STRONG)
        acc.open(Tag.STRONG)
        acc.close(Tag.STRONG)
        assert acc.snapshot().bold is True
        acc.close(Tag.STRONG)
        assert acc.snapshot().bold is False

    def test_stray_close_is_ignored(self):
        acc = StyleAccumulator()
        acc.close(Tag.EMPHASIS)
        acc.close(Tag.LINK)
        assert acc.depth(Tag.EMPHASIS) == 0
        acc.open(Tag.EMPHASIS)
        assert acc.snapshot().italic is True

    def test_link_underlines_and_colors(self):
        acc = StyleAccumulator(StyleConfig(link_color="#123456"))
        acc.open(Tag.LINK, href="https://example.com")
        style = acc.snapshot()
        assert style.underline is True
        assert style.color == "#123456"
        assert style.link == "https://example.com"
        acc.close(Tag.LINK)
        assert acc.snapshot().link is None

    def test_nested_links_restore_outer(self):
        acc = StyleAccumulator()
        acc.open(Tag.LINK, href="outer")
        acc.open(Tag.LINK, href="inner")
        acc.close(Tag.LINK)
        assert acc.link == "outer"

    def test_code_run_forces_monospace(self):
        acc = StyleAccumulator()
        acc.open(Tag.STRONG)
        run = acc.code_run("x")
        assert run.text == "x"
        assert run.style.font_family == "Cascadia Mono"
        assert run.style.background == StyleConfig().code_background
        assert run.style.bold is True

    def test_math_run(self):
        run = StyleAccumulator().math_run("x^2")
        assert run.style.italic is True
        assert run.style.font_family == StyleConfig().math_font_family

    def test_footnote_run(self):
        run = StyleAccumulator().footnote_run("3")
        assert run.text == "[3]"
        assert run.style.superscript is True

    def test_reset(self):
        acc = StyleAccumulator()
        acc.open(Tag.STRIKETHROUGH)
        acc.open(Tag.LINK, href="x")
        acc.reset()
        style = acc.snapshot()
        assert style.strikethrough is False
        assert style.link is None
