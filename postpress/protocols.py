"""Protocol definitions for postpress.

Rendering depends on these small interfaces rather than on Jinja2 directly,
so a layout can come from a file system loader, an in-memory mapping in a
test, or any other template source.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Template(Protocol):
    """A compiled layout that renders a context to a string."""

    @abstractmethod
    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the template with the given context variables."""
        ...


@runtime_checkable
class TemplateResolver(Protocol):
    """Maps a layout name to a template."""

    @abstractmethod
    def resolve(self, layout: str) -> Template:
        """Return the template registered for ``layout``.

        Args:
            layout: Layout name from a post's front-matter.

        Returns:
            The template to render the post with.

        Raises:
            UnknownLayoutError: If no template is registered for the name.
        """
        ...
