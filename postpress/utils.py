"""Utility functions for postpress.

String, path and filesystem helpers shared by the loader, renderer and build.

Key functions:
    slugify: Convert a post filename to a URL slug.
    strip_date_prefix: Remove a YYYY-MM-DD- prefix from a filename stem.
    parse_categories: Normalize a categories value to a tuple of names.
    is_post_file: Check if a path is a post source file.
    is_ignored_name: Check if a file name is internal (_ or . prefixed).
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Any

POST_SUFFIXES = (".md", ".markdown", ".html")

_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}-")


def strip_date_prefix(name: str) -> str:
    """Remove a leading ``YYYY-MM-DD-`` from a filename stem.

    Examples:
        >>> strip_date_prefix("2019-04-08-window-functions")
        'window-functions'
    """
    return _DATE_PREFIX_RE.sub("", name, count=1)


def slugify(name: str) -> str:
    """Convert filename (without extension) to slug, dropping date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def parse_categories(*values: Any) -> tuple[str, ...]:
    """Normalize front-matter category values.

    Each value may be None, a space-separated string or a list of names.
    Duplicates are dropped, first occurrence wins.

    Examples:
        >>> parse_categories("sql postgres", ["sql", "ruby"])
        ('sql', 'postgres', 'ruby')
    """
    seen: list[str] = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, str):
            tokens = value.split()
        elif isinstance(value, (list, tuple, set)):
            tokens = [str(item).strip() for item in value]
        else:
            tokens = [str(value)]
        for token in tokens:
            if token and token not in seen:
                seen.append(token)
    return tuple(seen)


def is_ignored_name(name: str) -> bool:
    """Check if a file or directory name is internal or hidden."""
    return name.startswith(("_", "."))


def is_post_file(path: Path) -> bool:
    """Check if a path is a post source file.

    Args:
        path: Path to check.

    Returns:
        True for visible Markdown or HTML files.
    """
    return (
        path.is_file()
        and not is_ignored_name(path.name)
        and path.suffix.lower() in POST_SUFFIXES
    )


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)
