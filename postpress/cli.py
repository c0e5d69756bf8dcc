"""Command-line interface for postpress.

This module defines the CLI commands using the Click framework.

Commands:
- build: Render a source directory into a destination directory.
- check: Validate posts and layouts without writing anything.
- new: Create a dated post file with front-matter.

``build`` and ``check`` exit with status 1 when any post fails, after
listing every offending file on standard error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

import click
import yaml

from . import __version__
from .errors import BuildError, ConfigError, PostError
from .logging import setup_logging
from .utils import slugify

_SOURCE_DIR = click.Path(exists=True, file_okay=False, path_type=Path)
_CONFIG_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group()
@click.version_option(version=__version__, prog_name="postpress")
@click.option("-v", "--verbose", is_flag=True, help="Log debug details")
def cli(verbose: bool):
    """Postpress static blog builder."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.argument("source", type=_SOURCE_DIR)
@click.argument("destination", type=click.Path(file_okay=False, path_type=Path))
@click.option("--config", "config_path", type=_CONFIG_FILE, help="Configuration file")
def build(source: Path, destination: Path, config_path: Path | None):
    """Build the site from SOURCE into DESTINATION."""
    from .build import build_site

    try:
        result = build_site(source, destination, config_path=config_path)
    except (BuildError, ConfigError) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Built {len(result.posts)} posts into {result.output_dir}")
    if result.errors:
        _report_errors(result.errors, source, "Build failed")
        raise SystemExit(1)


@cli.command()
@click.argument("source", type=_SOURCE_DIR)
@click.option("--config", "config_path", type=_CONFIG_FILE, help="Configuration file")
def check(source: Path, config_path: Path | None):
    """Validate the posts in SOURCE without writing output."""
    from .build import check_site

    try:
        errors = check_site(source, config_path=config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None
    if errors:
        _report_errors(errors, source, "Check failed")
        raise SystemExit(1)
    click.echo("All posts are valid")


@cli.command()
@click.argument("source", type=_SOURCE_DIR)
@click.argument("title")
@click.option("--category", "categories", multiple=True, help="Category (repeatable)")
@click.option("--layout", default="post", show_default=True, help="Layout name")
def new(source: Path, title: str, categories: Sequence[str], layout: str):
    """Create a new post titled TITLE in SOURCE/_posts."""
    now = datetime.now().astimezone()
    posts_dir = source / "_posts"
    target = posts_dir / f"{now.strftime('%Y-%m-%d')}-{slugify(title)}.md"
    if target.exists():
        raise click.ClickException(f"File already exists: {target}")

    frontmatter = {
        "layout": layout,
        "title": title,
        "date": now.strftime("%Y-%m-%d %H:%M:%S %z"),
    }
    if categories:
        frontmatter["categories"] = " ".join(categories)
    header = yaml.safe_dump(
        frontmatter, allow_unicode=True, sort_keys=False, default_flow_style=False
    )
    posts_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    click.echo(f"Created {target}")


def _report_errors(errors: Sequence[PostError], source: Path, heading: str) -> None:
    """Print every failure with the file it came from."""
    click.echo(
        click.style(f"{heading}: {len(errors)} error(s)", fg="red", bold=True), err=True
    )
    for error in errors:
        if error.source_path is not None:
            try:
                shown = error.source_path.relative_to(source)
            except ValueError:
                shown = error.source_path
            click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
        click.echo(
            click.style(f"  Error: {type(error).__name__}: {error.message}", fg="white"),
            err=True,
        )


def main():
    """Entry point for the CLI application."""
    cli()
