"""Error types for postpress.

Every failure tied to a single post derives from PostError and carries the
path of the offending file, so the build can collect them and report them
together instead of aborting on the first one.

Classes:
    PostError: Base class for per-post failures.
    MalformedPostError: Front-matter could not be split or parsed.
    MissingRequiredFieldError: Front-matter lacks title, date or layout.
    UnknownLayoutError: No template is registered for a post's layout.
    TemplateRenderError: The layout template failed while rendering.
    DuplicatePermalinkError: Two posts would be written to the same URL.
    ConfigError: The site configuration file could not be loaded.
    BuildError: The build cannot start at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class PostError(Exception):
    """Error tied to one post file.

    Attributes:
        source_path: Path to the post file that caused the error.
        message: Human-readable error message.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}" if source_path else message)


class MalformedPostError(PostError):
    """Front-matter is missing a delimiter or is not a YAML mapping."""


class MissingRequiredFieldError(PostError):
    """Front-matter parsed but one or more required fields are absent."""

    def __init__(self, source_path: Path, fields: Iterable[str]):
        self.fields = tuple(fields)
        super().__init__(
            source_path, f"missing required field(s): {', '.join(self.fields)}"
        )


class UnknownLayoutError(PostError):
    """A post names a layout with no registered template.

    Template resolvers raise it without a path; the renderer re-raises it
    with the path of the post being rendered.
    """

    def __init__(self, layout: str, source_path: Path | None = None):
        self.layout = layout
        super().__init__(source_path, f"unknown layout '{layout}'")


class TemplateRenderError(PostError):
    """The layout template raised while rendering a post."""


class DuplicatePermalinkError(PostError):
    """A post resolves to the same URL as a newer post and was not written."""

    def __init__(self, source_path: Path, url: str, kept_path: Path):
        self.url = url
        self.kept_path = kept_path
        super().__init__(
            source_path, f"permalink {url} is already used by {kept_path.name}"
        )


class ConfigError(Exception):
    """The site configuration file is unreadable or not a mapping."""

    def __init__(self, config_path: Path, message: str):
        self.config_path = config_path
        self.message = message
        super().__init__(f"{config_path}: {message}")


class BuildError(Exception):
    """The build cannot start, e.g. the output directory would clobber the source."""
