"""Content loading for postpress.

This module turns post files into immutable Post objects. A post file is
split into its front-matter and body, the front-matter is validated and the
body is segmented into prose and code blocks ready for rendering.

Key classes:
- Post: Frozen dataclass representing one published post.
- ProseBlock / CodeBlock: The two kinds of body segment.
- PermalinkBuilder: Derives a post's URL from its date, slug and categories.
- PostLoader: Discovers post files and builds Posts, collecting failures.
- LoadResult: Valid posts plus the errors met while loading.

Key functions:
- split_blocks: Segment a body into prose and code blocks.
- load_all: Load every post under a directory.
- sort_chronologically: Newest first, ties broken by source path.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any, Union

from .errors import MalformedPostError, PostError
from .frontmatter import split_frontmatter, validate_frontmatter
from .html_utils import strip_tags
from .utils import is_post_file, slugify

logger = logging.getLogger(__name__)

DEFAULT_PERMALINK = "/:categories/:year/:month/:day/:title/"

HIGHLIGHT_OPEN_RE = re.compile(
    r"^\s*\{%-?\s*highlight\s+(?P<lang>[\w+#.-]+)(?P<options>[^%]*?)\s*-?%\}\s*$"
)
HIGHLIGHT_CLOSE_RE = re.compile(r"^\s*\{%-?\s*endhighlight\s*-?%\}\s*$")
FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")


@dataclass(frozen=True)
class ProseBlock:
    """A run of Markdown/HTML text between code blocks."""

    text: str


@dataclass(frozen=True)
class CodeBlock:
    """A fenced or highlight-tagged code block.

    Attributes:
        code: Block content, exactly as written between the markers.
        language: Language tag for the highlighter, if any.
        options: Extra words after the language (e.g. ``linenos``).
    """

    code: str
    language: str | None = None
    options: tuple[str, ...] = ()


Block = Union[ProseBlock, CodeBlock]


@dataclass(frozen=True)
class Post:
    """A blog post loaded from one source file.

    Attributes:
        title: Display title from front-matter.
        date: Publication timestamp, always timezone-aware.
        layout: Name of the layout template to render with.
        categories: Category names in first-seen order.
        image: Optional preview image path.
        body: Raw body text after the front-matter.
        blocks: Body segmented into prose and code blocks.
        path: Path to the source file.
        slug: URL slug derived from the filename.
        url: Permalink path of the rendered page.
        frontmatter: The complete parsed front-matter mapping.
    """

    title: str
    date: datetime
    layout: str
    categories: tuple[str, ...]
    image: str | None
    body: str
    blocks: tuple[Block, ...]
    path: Path
    slug: str
    url: str
    frontmatter: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def excerpt(self) -> str:
        """First prose paragraph as plain text, skipping headings and images.

        Inline markup is stripped; a paragraph that is only markup is skipped.
        """
        for block in self.blocks:
            if not isinstance(block, ProseBlock):
                continue
            for para in block.text.split("\n\n"):
                para = para.strip()
                if para.startswith(("#", "![", "{%")):
                    continue
                text = " ".join(strip_tags(para).split())
                if text:
                    return text
        return ""


def _parse_fence_info(info: str) -> tuple[str | None, tuple[str, ...]]:
    words = info.strip().split()
    if not words:
        return None, ()
    return words[0], tuple(words[1:])


def _closes_fence(line: str, fence: str) -> bool:
    stripped = line.rstrip("\r\n")
    if len(stripped) - len(stripped.lstrip(" ")) > 3:
        return False
    stripped = stripped.strip()
    return len(stripped) >= len(fence) and set(stripped) == {fence[0]}


def split_blocks(body: str) -> tuple[Block, ...]:
    """Segment a post body into prose and code blocks.

    Recognizes ``{% highlight lang %}`` ... ``{% endhighlight %}`` tags and
    Markdown fences (three or more backticks or tildes). Text between the
    markers is kept verbatim. An unclosed highlight tag stays in the prose;
    an unclosed fence runs to the end of the body.

    Args:
        body: Post body text.

    Returns:
        Tuple of ProseBlock and CodeBlock objects in document order.
    """
    blocks: list[Block] = []
    prose: list[str] = []
    lines = body.splitlines(keepends=True)
    index = 0

    def flush_prose() -> None:
        if prose:
            blocks.append(ProseBlock("".join(prose)))
            prose.clear()

    while index < len(lines):
        line = lines[index]

        highlight = HIGHLIGHT_OPEN_RE.match(line.rstrip("\r\n"))
        if highlight:
            end = next(
                (
                    j
                    for j in range(index + 1, len(lines))
                    if HIGHLIGHT_CLOSE_RE.match(lines[j].rstrip("\r\n"))
                ),
                None,
            )
            if end is not None:
                flush_prose()
                blocks.append(
                    CodeBlock(
                        code="".join(lines[index + 1 : end]),
                        language=highlight.group("lang"),
                        options=tuple(highlight.group("options").split()),
                    )
                )
                index = end + 1
                continue

        fence = FENCE_OPEN_RE.match(line.rstrip("\r\n"))
        if fence and not (fence.group("fence")[0] == "`" and "`" in fence.group("info")):
            marker = fence.group("fence")
            end = next(
                (j for j in range(index + 1, len(lines)) if _closes_fence(lines[j], marker)),
                len(lines),
            )
            flush_prose()
            language, options = _parse_fence_info(fence.group("info"))
            blocks.append(
                CodeBlock(
                    code="".join(lines[index + 1 : end]),
                    language=language,
                    options=options,
                )
            )
            index = end + 1
            continue

        prose.append(line)
        index += 1

    flush_prose()
    return tuple(blocks)


class PermalinkBuilder:
    """Derives permalink paths for posts.

    Supported tokens are ``:year``, ``:month``, ``:day``, ``:title`` and
    ``:categories``. Empty segments collapse, so a post without categories
    under the default pattern lands at ``/2019/04/08/slug/``.
    """

    def __init__(self, pattern: str = DEFAULT_PERMALINK):
        self.pattern = pattern or DEFAULT_PERMALINK

    def derive(self, date: datetime, slug: str, categories: Iterable[str]) -> str:
        category_path = "/".join(slugify(c) for c in categories)
        values = {
            ":categories": category_path,
            ":year": f"{date.year:04d}",
            ":month": f"{date.month:02d}",
            ":day": f"{date.day:02d}",
            ":title": slug,
        }
        url = self.pattern
        for token in sorted(values, key=len, reverse=True):
            url = url.replace(token, values[token])
        url = re.sub(r"/{2,}", "/", f"/{url}")
        return url


@dataclass
class LoadResult:
    """Outcome of loading a directory of posts.

    Attributes:
        posts: Posts that parsed and validated.
        errors: One error per rejected file.
    """

    posts: list[Post] = field(default_factory=list)
    errors: list[PostError] = field(default_factory=list)


class PostLoader:
    """Loads posts from a directory.

    Attributes:
        root_dir: Directory holding the post files.
        default_tz: Timezone applied to dates without an offset.
        permalinks: Permalink builder for post URLs.
    """

    def __init__(
        self,
        root_dir: Path,
        default_tz: tzinfo = timezone.utc,
        permalink: str = DEFAULT_PERMALINK,
    ):
        self.root_dir = root_dir
        self.default_tz = default_tz
        self.permalinks = PermalinkBuilder(permalink)

    @property
    def posts_dir(self) -> Path:
        """The ``_posts`` subdirectory if present, else the root itself."""
        candidate = self.root_dir / "_posts"
        return candidate if candidate.is_dir() else self.root_dir

    def iter_files(self) -> list[Path]:
        """List post files, sorted by name."""
        if not self.posts_dir.is_dir():
            return []
        return sorted(p for p in self.posts_dir.iterdir() if is_post_file(p))

    def load_file(self, path: Path) -> Post:
        """Build a Post from one file.

        Raises:
            MalformedPostError: If the file cannot be decoded or split.
            MissingRequiredFieldError: If required fields are absent.
        """
        try:
            text = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPostError(path, f"not valid UTF-8: {exc}", exc) from exc

        data, body = split_frontmatter(text, path)
        fields = validate_frontmatter(data, path, self.default_tz)
        slug = slugify(path.stem)
        return Post(
            title=fields["title"],
            date=fields["date"],
            layout=fields["layout"],
            categories=fields["categories"],
            image=fields["image"],
            body=body,
            blocks=split_blocks(body),
            path=path,
            slug=slug,
            url=self.permalinks.derive(fields["date"], slug, fields["categories"]),
            frontmatter=data,
        )

    def load(self) -> LoadResult:
        """Load every post file, continuing past individual failures."""
        result = LoadResult()
        for path in self.iter_files():
            try:
                post = self.load_file(path)
            except PostError as exc:
                logger.warning("Skipping %s: %s", path, exc.message)
                result.errors.append(exc)
                continue
            logger.debug("Loaded %s (%s)", path.name, post.url)
            result.posts.append(post)
        return result


def load_all(
    root_dir: Path,
    default_tz: tzinfo = timezone.utc,
    permalink: str = DEFAULT_PERMALINK,
) -> LoadResult:
    """Load all posts under ``root_dir``.

    Args:
        root_dir: Site source directory or a directory of post files.
        default_tz: Timezone for dates given without an offset.
        permalink: Permalink pattern for post URLs.

    Returns:
        LoadResult with the valid posts and the per-file errors.
    """
    return PostLoader(root_dir, default_tz, permalink).load()


def sort_chronologically(posts: Iterable[Post]) -> list[Post]:
    """Order posts newest first.

    Posts sharing a timestamp are ordered by source path so the result is
    the same on every run.
    """
    by_path = sorted(posts, key=lambda p: str(p.path))
    return sorted(by_path, key=lambda p: p.date, reverse=True)
