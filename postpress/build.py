"""Site building for postpress.

This module contains the core logic for building a blog from a source
directory: it loads configuration and posts, renders each post through its
layout, writes the index pages, copies static files and generates feeds.

Failures tied to a single post never stop the build. They are collected in
BuildResult.errors and the remaining posts are still written.

Key functions:
- build_site: Build the entire site.
- check_site: Load and validate posts and layouts without writing output.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from .collections import paginate
from .config import CONFIG_FILENAME, load_config, site_timezone
from .content import Post, load_all, sort_chronologically
from .errors import (
    BuildError,
    DuplicatePermalinkError,
    PostError,
    TemplateRenderError,
    UnknownLayoutError,
)
from .feeds import create_default_feed_registry
from .templates import TemplateEngine
from .utils import ensure_clean_dir, is_ignored_name, is_post_file

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        posts: Posts that were rendered and written, newest first.
        output_dir: Directory where the site was built.
        written: Every file written, in write order.
        errors: Every per-post failure, from loading and from rendering.
        config: Effective site configuration.
    """

    posts: list[Post]
    output_dir: Path
    written: list[Path] = field(default_factory=list)
    errors: list[PostError] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def output_path_for(output_dir: Path, url: str) -> Path:
    """Map a URL path to the file that serves it.

    Directory-style URLs get an ``index.html``; URLs naming an ``.html`` or
    ``.xml`` file are written as that file.
    """
    relative = url.strip("/")
    if not relative:
        return output_dir / "index.html"
    if not url.endswith("/") and Path(relative).suffix.lower() in (".html", ".htm", ".xml"):
        return output_dir / relative
    return output_dir / relative / "index.html"


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def _check_output_dir(source_dir: Path, output_dir: Path) -> None:
    source = source_dir.resolve()
    output = output_dir.resolve()
    if output == source or output in source.parents:
        raise BuildError(
            f"Refusing to build into {output_dir}: it would delete the source directory"
        )


def _load(source_dir: Path, config: dict[str, Any]):
    return load_all(
        source_dir,
        default_tz=site_timezone(config),
        permalink=str(config.get("permalink") or ""),
    )


def build_site(
    source_dir: Path,
    output_dir: Path,
    config_path: Path | None = None,
    clean_output: bool = True,
) -> BuildResult:
    """Build the entire site.

    Args:
        source_dir: Site source directory.
        output_dir: Destination for the rendered site.
        config_path: Optional configuration file instead of ``_config.yml``.
        clean_output: Whether to wipe the output directory before building.

    Returns:
        BuildResult with written posts and every per-post error.

    Raises:
        ConfigError: If the configuration cannot be loaded.
        BuildError: If the output directory would overwrite the source.
        FileNotFoundError: If the source directory does not exist.
    """
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Expected source directory at {source_dir}")
    _check_output_dir(source_dir, output_dir)
    config = load_config(source_dir, config_path)
    loaded = _load(source_dir, config)

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    result = BuildResult(
        posts=[], output_dir=output_dir, errors=list(loaded.errors), config=config
    )
    engine = TemplateEngine(source_dir, config)
    engine.update_collections(loaded.posts)

    seen: dict[Path, Post] = {}
    for post in sort_chronologically(loaded.posts):
        try:
            rendered = engine.render_post(post)
        except PostError as exc:
            logger.warning("Failed to render %s: %s", post.path, exc.message)
            result.errors.append(exc)
            continue
        target = output_path_for(output_dir, post.url)
        if target in seen:
            error = DuplicatePermalinkError(post.path, post.url, seen[target].path)
            logger.warning("Skipping %s: %s", post.path, error.message)
            result.errors.append(error)
            continue
        seen[target] = post
        _write(target, rendered)
        result.written.append(target)
        result.posts.append(post)
        logger.debug("Wrote %s", target)

    _write_index(engine, result)
    _copy_static_files(source_dir, output_dir, config, result)
    result.written.extend(
        create_default_feed_registry().generate_all(output_dir, result.posts, config)
    )
    logger.info(
        "Built %d post(s) into %s with %d error(s)",
        len(result.posts),
        output_dir,
        len(result.errors),
    )
    return result


def _write_index(engine: TemplateEngine, result: BuildResult) -> None:
    """Render the chronological listing, paginated when configured."""
    per_page = int(result.config.get("paginate") or 0)
    for paginator in paginate(result.posts, per_page):
        try:
            rendered = engine.render_index(paginator)
        except TemplateError as exc:
            error = TemplateRenderError(
                None, f"index page {paginator.path} failed: {exc}", exc
            )
            logger.warning("%s", error.message)
            result.errors.append(error)
            continue
        target = output_path_for(result.output_dir, paginator.path)
        _write(target, rendered)
        result.written.append(target)


def _copy_static_files(
    source_dir: Path, output_dir: Path, config: dict[str, Any], result: BuildResult
) -> None:
    """Copy files that are not posts, layouts or configuration.

    Anything whose path has a component starting with ``_`` or ``.`` is
    skipped, as are names listed under ``exclude``.
    """
    excluded = {str(name) for name in config.get("exclude") or []}
    excluded.add(CONFIG_FILENAME)
    output = output_dir.resolve()
    posts_at_root = not (source_dir / "_posts").is_dir()

    for path in sorted(source_dir.rglob("*")):
        if path.is_dir():
            continue
        rel = path.relative_to(source_dir)
        if any(is_ignored_name(part) or part in excluded for part in rel.parts):
            continue
        if output == path.resolve() or output in path.resolve().parents:
            continue
        if posts_at_root and len(rel.parts) == 1 and is_post_file(path):
            continue
        target = output_dir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        result.written.append(target)


def check_site(source_dir: Path, config_path: Path | None = None) -> list[PostError]:
    """Validate posts and their layouts without writing anything.

    Args:
        source_dir: Site source directory.
        config_path: Optional configuration file instead of ``_config.yml``.

    Returns:
        Every error a build would report for loading and layout lookup.
    """
    config = load_config(source_dir, config_path)
    loaded = _load(source_dir, config)
    errors: list[PostError] = list(loaded.errors)
    engine = TemplateEngine(source_dir, config)
    for post in sort_chronologically(loaded.posts):
        try:
            engine.resolver.resolve(post.layout)
        except UnknownLayoutError:
            errors.append(UnknownLayoutError(post.layout, post.path))
        except TemplateError as exc:
            errors.append(TemplateRenderError(post.path, str(exc), exc))
    return errors
