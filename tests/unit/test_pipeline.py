"""Tests for MarkdownDocument, the pipeline orchestrator and the CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from PIL import Image

from mdview.cli import main
from mdview.config import Config
from mdview.document import MarkdownDocument
from mdview.exceptions import ExportError, LoadError
from mdview.ir.schema import AssetStatus, DocumentTree, ParagraphBlock
from mdview.pipeline import Pipeline
from mdview.views.snapshot import ViewMode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SAMPLE = "# Guide\n\nIntro paragraph.\n\n## Setup\n\n- step one\n- step two\n"


def _write_sample(tmp_path: Path, text: str = SAMPLE) -> Path:
    path = tmp_path / "guide.md"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# MarkdownDocument
# ---------------------------------------------------------------------------

class TestMarkdownDocument:
    def test_load_from_path(self, tmp_path):
        doc = MarkdownDocument.load_from_path(_write_sample(tmp_path))
        assert doc.source == SAMPLE
        assert doc.mode is ViewMode.RENDERED
        assert doc.base_path == tmp_path

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(LoadError, match="not found"):
            MarkdownDocument.load_from_path(tmp_path / "nope.md")

    def test_load_undecodable_file(self, tmp_path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(LoadError, match="Failed to read"):
            MarkdownDocument.load_from_path(path)

    def test_tree_records_source_file(self, tmp_path):
        path = _write_sample(tmp_path)
        tree = MarkdownDocument.load_from_path(path).to_document_tree()
        assert tree.metadata.source_file == str(path)
        assert tree.metadata.title == "Guide"

    def test_fallback_paragraph_for_blockless_source(self):
        source = "<!-- only a comment -->"
        tree = MarkdownDocument(source).to_document_tree()
        (para,) = tree.body
        assert isinstance(para, ParagraphBlock)
        assert para.id == 1
        assert para.text == source

    def test_empty_source_has_empty_tree(self):
        assert MarkdownDocument("").to_document_tree().body == []


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestPipeline:
    def test_convert(self, tmp_path):
        with Pipeline() as pipeline:
            tree = pipeline.convert(_write_sample(tmp_path))
        assert [b.type for b in tree.body] == ["heading", "paragraph", "heading", "list"]

    def test_convert_produces_report(self, tmp_path):
        with Pipeline() as pipeline:
            pipeline.convert(_write_sample(tmp_path))
            report = pipeline.last_report
        assert report is not None
        assert report.heading_count == 2
        assert report.count("list") == 1
        assert report.source_lines == len(SAMPLE.splitlines())
        assert report.total_time_seconds >= 0

    def test_convert_saves_report(self, tmp_path):
        with Pipeline() as pipeline:
            pipeline.convert(_write_sample(tmp_path), save_report=True)
        data = json.loads((tmp_path / "guide.report.json").read_text())
        assert data["blocks_by_type"]["heading"] == 2

    def test_convert_saves_report_custom_path(self, tmp_path):
        custom = tmp_path / "custom.json"
        with Pipeline() as pipeline:
            pipeline.convert(_write_sample(tmp_path), save_report=True, report_path=custom)
        assert custom.exists()

    def test_wait_images_resolves_sizes(self, tmp_path):
        Image.new("RGB", (12, 34)).save(tmp_path / "fig.png")
        path = _write_sample(tmp_path, "![fig](fig.png)\n")
        with Pipeline() as pipeline:
            tree = pipeline.convert(path, wait_images=True)
            assert pipeline.image_cache.get("fig.png").status is AssetStatus.READY
        (image,) = tree.body
        assert (image.width, image.height) == (12.0, 34.0)

    def test_missing_image_fails_and_keeps_fallback(self, tmp_path):
        path = _write_sample(tmp_path, "![gone](gone.png)\n")
        with Pipeline() as pipeline:
            tree = pipeline.convert(path, wait_images=True)
            assert pipeline.image_cache.get("gone.png").status is AssetStatus.FAILED
            assert pipeline.last_report.images_by_status == {"failed": 1}
        (image,) = tree.body
        assert (image.width, image.height) == (320.0, 180.0)

    def test_outline(self, tmp_path):
        with Pipeline() as pipeline:
            entries = pipeline.outline(_write_sample(tmp_path))
        assert [(e.level, e.title) for e in entries] == [(1, "Guide"), (2, "Setup")]

    def test_highlight(self, tmp_path):
        with Pipeline() as pipeline:
            spans = pipeline.highlight(_write_sample(tmp_path))
        assert spans

    def test_snapshot_uses_configured_default_mode(self, tmp_path):
        config = Config.from_yaml_string("view:\n  default_mode: source\n")
        with Pipeline(config) as pipeline:
            snap = pipeline.snapshot(_write_sample(tmp_path))
        assert snap.mode is ViewMode.SOURCE
        assert snap.tree is None

    def test_snapshot_explicit_mode(self, tmp_path):
        with Pipeline() as pipeline:
            snap = pipeline.snapshot(_write_sample(tmp_path), mode="split")
        assert snap.mode is ViewMode.SPLIT
        assert snap.tree is not None and snap.lines

    def test_export(self, tmp_path):
        out = tmp_path / "guide.html"
        with Pipeline() as pipeline:
            result = pipeline.export(_write_sample(tmp_path), out)
        assert result == out
        assert "<h2>Setup</h2>" in out.read_text(encoding="utf-8")

    def test_export_unknown_format(self, tmp_path):
        with Pipeline() as pipeline:
            with pytest.raises(ExportError):
                pipeline.export(_write_sample(tmp_path), tmp_path / "guide.pdf")

    def test_save_tree_round_trip(self, tmp_path):
        with Pipeline() as pipeline:
            tree = pipeline.convert(_write_sample(tmp_path))
            saved = pipeline.save_tree(tree, tmp_path / "tree.json")
        assert DocumentTree.from_json(saved.read_text()) == tree

    def test_load_missing(self, tmp_path):
        with pytest.raises(LoadError):
            Pipeline().load(tmp_path / "missing.md")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCLI:
    def test_cli_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Markdown document tree" in result.output

    @pytest.mark.parametrize("command", ["convert", "outline", "view", "export"])
    def test_command_help(self, command):
        result = CliRunner().invoke(main, [command, "--help"])
        assert result.exit_code == 0

    def test_convert_prints_json(self, tmp_path):
        result = CliRunner().invoke(main, ["convert", str(_write_sample(tmp_path))])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["body"][0]["type"] == "heading"

    def test_convert_to_file_with_report(self, tmp_path):
        out = tmp_path / "tree.json"
        result = CliRunner().invoke(
            main, ["convert", str(_write_sample(tmp_path)), "-o", str(out), "--report"]
        )
        assert result.exit_code == 0
        assert "Generated" in result.output
        assert out.exists()
        assert (tmp_path / "guide.report.json").exists()

    def test_outline(self, tmp_path):
        result = CliRunner().invoke(main, ["outline", str(_write_sample(tmp_path))])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["Guide", "  Setup"]

    def test_view_source_mode(self, tmp_path):
        result = CliRunner().invoke(
            main, ["view", str(_write_sample(tmp_path)), "--mode", "SOURCE"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "source"
        assert "tree" not in data
        assert data["lines"][0] == {"number": 1, "text": "# Guide"}

    def test_view_rejects_unknown_mode(self, tmp_path):
        result = CliRunner().invoke(main, ["view", str(_write_sample(tmp_path)), "--mode", "x"])
        assert result.exit_code != 0

    def test_export(self, tmp_path):
        out = tmp_path / "guide.txt"
        result = CliRunner().invoke(main, ["export", str(_write_sample(tmp_path)), str(out)])
        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8").startswith("Guide\n")

    def test_export_unsupported_extension(self, tmp_path):
        out = tmp_path / "guide.docx"
        result = CliRunner().invoke(main, ["export", str(_write_sample(tmp_path)), str(out)])
        assert result.exit_code == 1
        assert "Unsupported export format" in result.output

    def test_convert_missing_input(self, tmp_path):
        result = CliRunner().invoke(main, ["convert", str(tmp_path / "nope.md")])
        assert result.exit_code != 0

    def test_config_option(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("view:\n  default_mode: split\n")
        result = CliRunner().invoke(
            main, ["--config", str(config), "view", str(_write_sample(tmp_path))]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["mode"] == "split"

    def test_cli_verbose(self):
        result = CliRunner().invoke(main, ["-v", "--help"])
        assert result.exit_code == 0
