"""Body rendering for postpress.

Prose blocks are converted with mistune; code blocks are highlighted with
Pygments. Highlighting never drops characters from a block: lexers are
created with ``stripnl=False`` and unknown languages fall back to an escaped
``<pre><code>`` block.

Key classes:
- CodeHighlighter: Renders one code block.
- PostRenderer: Renders a post body from its blocks.

Key functions:
- render: Render a post through its layout template.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

import mistune
from jinja2 import TemplateError
from markupsafe import Markup
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .content import CodeBlock, Post, ProseBlock
from .errors import TemplateRenderError, UnknownLayoutError
from .html_utils import escape_html
from .protocols import TemplateResolver

logger = logging.getLogger(__name__)

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

CODE_PLACEHOLDER_PREFIX = "postpress-code-block-"


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class CodeHighlighter:
    """Renders code blocks with Pygments.

    Attributes:
        css_class: CSS class of the Pygments wrapper div.
    """

    def __init__(self, css_class: str = "highlight"):
        self.css_class = css_class

    def render(
        self, code: str, language: str | None = None, options: Sequence[str] = ()
    ) -> str:
        """Render one code block to HTML.

        Args:
            code: Block content.
            language: Language tag, if any.
            options: Extra tag words; ``linenos`` turns on line numbers.

        Line endings are normalized to ``\\n`` on both paths, matching what
        Pygments emits.

        Returns:
            Highlighted HTML wrapped in a ``language-<tag>`` div, or an
            escaped ``<pre><code>`` block when the language is unknown.
        """
        code = code.replace("\r\n", "\n").replace("\r", "\n")
        if language:
            try:
                lexer = get_lexer_by_name(language, stripnl=False)
            except ClassNotFound:
                logger.debug("No lexer for language '%s'; rendering plain", language)
            else:
                formatter = HtmlFormatter(
                    cssclass=self.css_class,
                    linenos="inline" if "linenos" in options else False,
                )
                tag = escape_html(language)
                return (
                    f'<div class="language-{tag}" data-lang="{tag}">'
                    f"{highlight(code, lexer, formatter)}</div>\n"
                )
        lang_class = f' class="language-{escape_html(language)}"' if language else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"

    def stylesheet(self) -> str:
        """Return the Pygments CSS rules for ``css_class``."""
        return HtmlFormatter(cssclass=self.css_class).get_style_defs(f".{self.css_class}")


class _PostHTMLRenderer(mistune.HTMLRenderer):
    """mistune renderer adding heading anchors and Pygments code blocks."""

    def __init__(self, highlighter: CodeHighlighter):
        super().__init__(escape=False)
        self.highlighter = highlighter
        self._heading_id_counts: dict[str, int] = {}
        self.code_blocks: dict[str, CodeBlock] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        if not code and info in self.code_blocks:
            block = self.code_blocks[info]
            return self.highlighter.render(block.code, block.language, block.options)
        # Fences nested in lists or quotes reach mistune instead of split_blocks.
        words = (info or "").split()
        language = words[0] if words else None
        return self.highlighter.render(code, language, tuple(words[1:]))


class PostRenderer:
    """Renders a post body to HTML.

    Attributes:
        highlighter: Code block highlighter.
    """

    def __init__(self, highlighter: CodeHighlighter | None = None):
        self.highlighter = highlighter or CodeHighlighter()

    def render_body(self, post: Post) -> str:
        """Render every block of a post in order.

        Markdown posts are converted in a single mistune pass, so reference
        links and footnotes resolve across code blocks. Each code block is
        replaced by an empty placeholder fence and rendered from the original
        CodeBlock, which keeps its content exact. ``.html`` posts pass prose
        through untouched. Heading anchors are unique across the post.

        Args:
            post: Post to render.

        Returns:
            Rendered body HTML.
        """
        if post.path.suffix.lower() == ".html":
            return "".join(
                self.highlighter.render(block.code, block.language, block.options)
                if isinstance(block, CodeBlock)
                else block.text
                for block in post.blocks
            )

        renderer = _PostHTMLRenderer(self.highlighter)
        source: list[str] = []
        for block in post.blocks:
            if isinstance(block, ProseBlock):
                source.append(block.text)
                continue
            key = f"{CODE_PLACEHOLDER_PREFIX}{len(renderer.code_blocks)}"
            renderer.code_blocks[key] = block
            if source and not source[-1].endswith("\n"):
                source.append("\n")
            # The blank line closes any open HTML block before the fence.
            source.append(f"\n~~~ {key}\n~~~\n")

        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown("".join(source))


def _format_error_message(exc: Exception) -> str:
    """Format a template exception into a short message."""
    error_type = type(exc).__name__
    if error_type == "TemplateSyntaxError":
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    return f"{error_type}: {exc}"


def render(
    post: Post,
    template_resolver: TemplateResolver,
    context: dict[str, Any] | None = None,
    renderer: PostRenderer | None = None,
) -> str:
    """Render a post into a complete HTML document.

    The body is rendered first and handed to the layout as ``content``
    alongside the post itself as ``page``.

    Args:
        post: Post to render.
        template_resolver: Maps the post's layout name to a template.
        context: Extra template variables, such as ``site``.
        renderer: Body renderer; a default PostRenderer if omitted.

    Returns:
        The rendered HTML document.

    Raises:
        UnknownLayoutError: If the post's layout has no template.
        TemplateRenderError: If the layout template fails to load or render.
    """
    renderer = renderer or PostRenderer()
    try:
        template = template_resolver.resolve(post.layout)
    except UnknownLayoutError as exc:
        raise UnknownLayoutError(post.layout, post.path) from exc
    except TemplateError as exc:
        raise TemplateRenderError(post.path, _format_error_message(exc), exc) from exc

    variables = dict(context or {})
    variables.update(page=post, content=Markup(renderer.render_body(post)))
    try:
        return template.render(variables)
    except Exception as exc:
        raise TemplateRenderError(post.path, _format_error_message(exc), exc) from exc
