"""Feed generation for postpress.

This module generates the RSS feed and sitemap for a built site. Both need
an absolute site ``url`` in the configuration and are skipped without one.
Feed content only depends on the posts, so rebuilding an unchanged site
produces identical files.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates an RSS 2.0 feed.
    FeedRegistry: Runs a set of generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from email.utils import format_datetime
from pathlib import Path
from typing import Any

from .content import Post, sort_chronologically
from .html_utils import escape_html, join_root_url

logger = logging.getLogger(__name__)


def _site_base(config: dict[str, Any]) -> str:
    url = str(config.get("url") or "").rstrip("/")
    if not url:
        return ""
    return join_root_url(url, str(config.get("baseurl") or "")).rstrip("/")


class FeedGenerator(ABC):
    """Base class for feed generators.

    Subclasses name their output file and produce its content; ``write``
    handles the file system.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, such as 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(self, posts: Sequence[Post], config: dict[str, Any]) -> str | None:
        """Generate feed content.

        Args:
            posts: Published posts.
            config: Site configuration containing ``url``.

        Returns:
            Feed content, or None if the feed cannot be generated.
        """
        ...

    def write(
        self, output_dir: Path, posts: Sequence[Post], config: dict[str, Any]
    ) -> Path | None:
        """Generate the feed and write it under ``output_dir``.

        Returns:
            Path of the written file, or None if skipped.
        """
        content = self.generate(posts, config)
        if content is None:
            logger.debug("Skipping %s: no site url configured", self.filename)
            return None
        output_path = output_dir / self.filename
        output_path.write_text(content, encoding="utf-8")
        return output_path


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml listing the index and every post."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, posts: Sequence[Post], config: dict[str, Any]) -> str | None:
        base_url = _site_base(config)
        if not base_url:
            return None

        ordered = sort_chronologically(posts)
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        index_entry = f"  <url><loc>{escape_html(base_url)}/</loc>"
        if ordered:
            index_entry += f"<lastmod>{ordered[0].date.date().isoformat()}</lastmod>"
        lines.append(index_entry + "</url>")
        for post in ordered:
            loc = escape_html(f"{base_url}{post.url}")
            lastmod = post.date.date().isoformat()
            lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the newest posts.

    The number of items is capped by ``feed_limit``; ``lastBuildDate`` is
    the date of the newest post.
    """

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(self, posts: Sequence[Post], config: dict[str, Any]) -> str | None:
        base_url = _site_base(config)
        if not base_url:
            return None

        limit = int(config.get("feed_limit") or 20)
        ordered = sort_chronologically(posts)[:limit]
        title = escape_html(str(config.get("title") or base_url))

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{escape_html(str(config.get('description') or title))}</description>",
        ]
        if ordered:
            rss.append(f"<lastBuildDate>{format_datetime(ordered[0].date)}</lastBuildDate>")
        for post in ordered:
            link = escape_html(f"{base_url}{post.url}")
            categories = "".join(
                f"<category>{escape_html(c)}</category>" for c in post.categories
            )
            rss.append(
                f"<item><title>{escape_html(post.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid>"
                f"<description>{escape_html(post.excerpt or post.title)}</description>"
                f"{categories}<pubDate>{format_datetime(post.date)}</pubDate></item>"
            )
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry of feed generators run at the end of a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, posts: Sequence[Post], config: dict[str, Any]
    ) -> list[Path]:
        """Run every generator.

        Returns:
            Paths of the files that were written.
        """
        written = []
        for generator in self._generators:
            path = generator.write(output_dir, posts, config)
            if path is not None:
                written.append(path)
        return written


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
