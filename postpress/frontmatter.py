"""Front-matter parsing for postpress.

A post file starts with a YAML mapping fenced by ``---`` lines. This module
splits that header from the body, parses it and validates the fields every
post needs. A post with a broken header is an error: it is reported
instead of being rendered with guessed metadata.

Key functions:
- split_frontmatter: Separate the header mapping from the body text.
- parse_date: Turn a front-matter date value into an aware datetime.
- validate_frontmatter: Check required fields and normalize their values.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedPostError, MissingRequiredFieldError
from .utils import parse_categories

DELIMITER = "---"
REQUIRED_FIELDS = ("title", "date", "layout")

DATE_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:[Tt ]+(?P<time>\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?))?"
    r"\s*(?P<offset>Z|z|[+-]\d{2}:?\d{2})?$"
)


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r\n").rstrip() == DELIMITER


def split_frontmatter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    """Split a post into its front-matter mapping and body.

    The body is returned exactly as it appears after the closing delimiter
    line, including its leading blank lines and line endings.

    Args:
        text: Raw file content.
        path: Path to the file, used in error reports.

    Returns:
        Tuple of (front-matter dict, body text).

    Raises:
        MalformedPostError: If a delimiter is missing or the header is not
            a YAML mapping.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        raise MalformedPostError(path, "missing opening front-matter delimiter '---'")

    closing = None
    for index in range(1, len(lines)):
        if _is_delimiter(lines[index]):
            closing = index
            break
    if closing is None:
        raise MalformedPostError(path, "missing closing front-matter delimiter '---'")

    header = "".join(lines[1:closing])
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        raise MalformedPostError(path, f"invalid YAML in front-matter: {exc}", exc) from exc
    except (ValueError, OverflowError) as exc:
        # PyYAML builds timestamps eagerly, e.g. ``date: 2016-13-45``.
        raise MalformedPostError(path, f"invalid value in front-matter: {exc}", exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedPostError(
            path, f"front-matter must be a mapping, got {type(data).__name__}"
        )
    return data, "".join(lines[closing + 1 :])


def parse_date(value: Any, default_tz: tzinfo = timezone.utc) -> datetime:
    """Convert a front-matter date into a timezone-aware datetime.

    Accepts datetime and date objects (as produced by YAML timestamps) and
    strings such as ``2016-02-09``, ``2017-03-09 10:00`` or
    ``2019-04-08 21:15:00 +0100``. Values without an offset are placed in
    ``default_tz``.

    Raises:
        ValueError: If the value is not a recognizable date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        match = DATE_RE.match(value.strip())
        if not match:
            raise ValueError(f"unrecognized date {value!r}")
        parsed = datetime.fromisoformat(
            f"{match.group('date')}T{match.group('time') or '00:00'}"
        )
        offset = match.group("offset")
        if offset:
            parsed = parsed.replace(tzinfo=_parse_offset(offset))
    else:
        raise ValueError(f"unrecognized date {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def _parse_offset(offset: str) -> tzinfo:
    if offset in ("Z", "z"):
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    digits = offset[1:].replace(":", "")
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(sign * delta)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_frontmatter(
    data: dict[str, Any], path: Path, default_tz: tzinfo = timezone.utc
) -> dict[str, Any]:
    """Check required fields and normalize the recognized keys.

    Args:
        data: Parsed front-matter mapping.
        path: Path to the post file, used in error reports.
        default_tz: Timezone for dates given without an offset.

    Returns:
        Dictionary with ``title``, ``date``, ``layout``, ``categories`` and
        ``image`` keys.

    Raises:
        MissingRequiredFieldError: If title, date or layout is absent or empty.
        MalformedPostError: If the date cannot be parsed.
    """
    missing = [name for name in REQUIRED_FIELDS if _is_blank(data.get(name))]
    if missing:
        raise MissingRequiredFieldError(path, missing)

    try:
        when = parse_date(data["date"], default_tz)
    except ValueError as exc:
        raise MalformedPostError(path, f"invalid date: {exc}", exc) from exc

    image = data.get("image")
    return {
        "title": str(data["title"]).strip(),
        "date": when,
        "layout": str(data["layout"]).strip(),
        "categories": parse_categories(data.get("categories"), data.get("category")),
        "image": None if _is_blank(image) else str(image),
    }
