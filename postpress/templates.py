"""Template rendering engine for postpress.

This module uses Jinja2 to apply layouts to posts and to render the index
listing. Layouts live in ``_layouts/`` and partials in ``_includes/``.

Key classes:
- LayoutResolver: Maps layout names to Jinja2 templates.
- TemplateEngine: Renders posts and index pages with the shared context.

Every template receives:
- ``site``: the configuration mapping plus ``posts`` and ``categories``.
- ``page``: the Post (or, for the index, a mapping with ``title`` and ``url``).
- ``content``: rendered body HTML (posts only).
- ``paginator``: the current index page (index only).
- ``url_for()`` and ``pygments_css()`` helpers.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape

from .collections import CategoryCollection, Paginator, PostCollection
from .content import Post
from .errors import UnknownLayoutError
from .html_utils import join_root_url
from .renderers import CodeHighlighter, PostRenderer, render

__all__ = ["DEFAULT_INDEX_TEMPLATE", "LayoutResolver", "TemplateEngine"]

LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html", "")

DEFAULT_INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{ site.title }}</title></head>
<body>
<ul class="post-list">
{% for post in paginator.posts %}  <li>
    <span class="post-date">{{ post.date.strftime('%b %d, %Y') }}</span>
    <a href="{{ url_for(post.url) }}">{{ post.title }}</a>
  </li>
{% endfor %}</ul>
{% if paginator.previous_page_path %}<a href="{{ url_for(paginator.previous_page_path) }}">Newer</a>{% endif %}
{% if paginator.next_page_path %}<a href="{{ url_for(paginator.next_page_path) }}">Older</a>{% endif %}
</body>
</html>
"""


class LayoutResolver:
    """Resolves layout names to templates in the ``_layouts`` directory.

    For a layout ``post`` the candidates are ``post.html.jinja``,
    ``post.jinja``, ``post.html`` and ``post``. There is no fallback layout:
    a name with no file raises UnknownLayoutError.

    Attributes:
        env: Jinja2 environment loading from ``_layouts`` and ``_includes``.
    """

    def __init__(self, env: Environment):
        self.env = env

    def has_layout(self, layout: str) -> bool:
        try:
            self.resolve(layout)
        except UnknownLayoutError:
            return False
        return True

    def resolve(self, layout: str) -> Template:
        """Return the template for ``layout``.

        Raises:
            UnknownLayoutError: If no candidate file exists.
            TemplateSyntaxError: If the layout file does not compile.
        """
        for suffix in LAYOUT_SUFFIXES:
            try:
                return self.env.get_template(f"{layout}{suffix}")
            except TemplateNotFound:
                continue
        raise UnknownLayoutError(layout)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        source_dir: Site source directory.
        config: Site configuration mapping.
        env: Jinja2 environment.
        resolver: Layout resolver.
        renderer: Post body renderer.
        posts: All published posts, newest first.
        categories: Posts grouped by category.
    """

    def __init__(
        self,
        source_dir: Path,
        config: dict[str, Any],
        renderer: PostRenderer | None = None,
    ):
        self.source_dir = source_dir
        self.config = config
        self.env = Environment(
            loader=FileSystemLoader(
                [
                    source_dir / "_layouts",
                    source_dir / "_includes",
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self.resolver = LayoutResolver(self.env)
        self.renderer = renderer or PostRenderer(
            CodeHighlighter(str(config.get("highlight_class") or "highlight"))
        )
        self.posts = PostCollection([])
        self.categories = CategoryCollection([])
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global functions in the Jinja environment."""
        self.env.globals["url_for"] = self.url_for
        self.env.globals["pygments_css"] = self.renderer.highlighter.stylesheet

    def update_collections(self, posts: Iterable[Post]) -> None:
        """Set the posts visible to templates as ``site.posts``."""
        self.posts = PostCollection(posts).sorted()
        self.categories = CategoryCollection(self.posts)

    @property
    def site(self) -> dict[str, Any]:
        site = dict(self.config)
        site["posts"] = self.posts
        site["categories"] = self.categories
        return site

    def url_for(self, path: str) -> str:
        """Prefix a site path with ``baseurl``; absolute URLs pass through.

        Args:
            path: Path to generate a URL for.

        Returns:
            Path with the configured ``baseurl`` applied.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(str(self.config.get("baseurl") or ""), path)

    def render_post(self, post: Post) -> str:
        """Render a post with its layout.

        Raises:
            UnknownLayoutError: If the post's layout has no template.
            TemplateRenderError: If the layout fails to render.
        """
        return render(post, self.resolver, {"site": self.site}, self.renderer)

    def render_index(self, paginator: Paginator) -> str:
        """Render one index page.

        Uses the layout named by the ``index_layout`` setting when it exists,
        otherwise a built-in listing.
        """
        layout = str(self.config.get("index_layout") or "index")
        if self.resolver.has_layout(layout):
            template = self.resolver.resolve(layout)
        else:
            template = self.env.from_string(DEFAULT_INDEX_TEMPLATE)
        return template.render(
            site=self.site,
            paginator=paginator,
            page={"title": self.config.get("title", ""), "url": paginator.path},
        )
