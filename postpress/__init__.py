"""Postpress static blog builder.

This package turns a directory of blog posts (YAML front-matter followed by a
Markdown body with language-tagged code blocks) into a static HTML site using
mistune, Pygments and Jinja2 templates.

The main entry point is the CLI module, which provides commands for building
a site, validating posts without writing output, and creating new posts.

Layout:
- frontmatter: Splitting and validating the header of a post file.
- content: The Post model, body segmentation and the loader.
- renderers: Markdown and code block rendering.
- templates: Layout resolution and page rendering with Jinja2.
- collections: Chronological ordering, categories and pagination.
- feeds: RSS and sitemap generation.
- build: Orchestration of a full build.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
