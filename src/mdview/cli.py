"""Click CLI for mdview.

Commands:
    convert   — Markdown → document tree JSON
    outline   — Print the heading outline
    view      — Print a rendered/source/split view snapshot as JSON
    export    — Write plain text, Markdown or HTML by output extension
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from mdview.config import Config
from mdview.exceptions import MdViewError
from mdview.pipeline import Pipeline
from mdview.views.snapshot import ViewMode


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to a YAML configuration file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """Markdown document tree converter and viewer."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = Config.load(config_path)
    except MdViewError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
    if verbose:
        config.verbose = True

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    pipeline = Pipeline(config)
    ctx.obj["pipeline"] = pipeline
    ctx.call_on_close(pipeline.close)


@main.command()
@click.argument("input_md", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the tree JSON here instead of stdout.",
)
@click.option("--wait-images", is_flag=True, help="Wait for local images to resolve.")
@click.option("--report", is_flag=True, help="Save conversion report JSON alongside input.")
@click.option(
    "--report-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Custom path for the report JSON file.",
)
@click.pass_context
def convert(
    ctx: click.Context,
    input_md: Path,
    output: Path | None,
    wait_images: bool,
    report: bool,
    report_path: Path | None,
) -> None:
    """Convert a Markdown file to its document tree."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    try:
        tree = pipeline.convert(
            input_md,
            wait_images=wait_images,
            save_report=report,
            report_path=report_path,
        )
        if output is None:
            click.echo(tree.to_json())
        else:
            pipeline.save_tree(tree, output)
            click.echo(f"Generated: {output}")

        if report and pipeline.last_report:
            rpt = pipeline.last_report
            click.echo(
                f"Report: {rpt.block_count} blocks, {rpt.heading_count} headings, "
                f"{rpt.count('table')} tables, {rpt.count('image')} images, "
                f"{len(rpt.warnings)} warnings",
                err=True,
            )
    except MdViewError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("input_md", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def outline(ctx: click.Context, input_md: Path) -> None:
    """Print the heading outline, indented by level."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    try:
        for entry in pipeline.outline(input_md):
            click.echo(f"{'  ' * (entry.level - 1)}{entry.title}")
    except MdViewError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("input_md", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in ViewMode], case_sensitive=False),
    default=None,
    help="View mode (defaults to view.default_mode).",
)
@click.pass_context
def view(ctx: click.Context, input_md: Path, mode: str | None) -> None:
    """Print a view snapshot as JSON."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    try:
        snapshot = pipeline.snapshot(input_md, mode=mode)
        click.echo(snapshot.model_dump_json(indent=2, exclude_none=True))
    except MdViewError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


@main.command()
@click.argument("input_md", type=click.Path(exists=True, path_type=Path))
@click.argument("output", type=click.Path(path_type=Path))
@click.option("--wait-images", is_flag=True, help="Wait for local images to resolve.")
@click.pass_context
def export(ctx: click.Context, input_md: Path, output: Path, wait_images: bool) -> None:
    """Export a Markdown file as .txt, .md or .html."""
    pipeline: Pipeline = ctx.obj["pipeline"]

    try:
        result = pipeline.export(input_md, output, wait_images=wait_images)
        click.echo(f"Generated: {result}")
    except MdViewError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)
