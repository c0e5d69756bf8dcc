from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

from .content import Post, sort_chronologically


class PostCollection(Sequence[Post]):
    """Lightweight helper for working with lists of Posts in templates and code."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)
        self._sorted_cache: PostCollection | None = None

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def in_category(self, name: str) -> PostCollection:
        return PostCollection(p for p in self._posts if name in p.categories)

    def sorted(self) -> PostCollection:
        """Posts newest first, ties broken by source path."""
        if self._sorted_cache is None:
            self._sorted_cache = PostCollection(sort_chronologically(self._posts))
        return self._sorted_cache

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self.sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class CategoryCollection(Mapping[str, PostCollection]):
    """Mapping of category name to its posts, newest first, keys sorted."""

    def __init__(self, posts: Iterable[Post]):
        grouped: dict[str, list[Post]] = {}
        for post in posts:
            for category in post.categories:
                grouped.setdefault(category, []).append(post)
        self._mapping = {
            name: PostCollection(grouped[name]).sorted() for name in sorted(grouped)
        }

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"CategoryCollection({len(self._mapping)} categories)"


@dataclass(frozen=True)
class Paginator:
    """One page of the post index.

    Attributes:
        page: 1-based page number.
        total_pages: Number of index pages.
        posts: Posts shown on this page.
        total_posts: Number of posts across all pages.
    """

    page: int
    total_pages: int
    posts: PostCollection
    total_posts: int

    @staticmethod
    def path_for(page: int) -> str:
        """URL path of index page ``page``: ``/`` then ``/page2/`` onward."""
        return "/" if page <= 1 else f"/page{page}/"

    @property
    def path(self) -> str:
        return self.path_for(self.page)

    @property
    def previous_page(self) -> int | None:
        return self.page - 1 if self.page > 1 else None

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.page < self.total_pages else None

    @property
    def previous_page_path(self) -> str | None:
        return None if self.previous_page is None else self.path_for(self.previous_page)

    @property
    def next_page_path(self) -> str | None:
        return None if self.next_page is None else self.path_for(self.next_page)


def paginate(posts: Sequence[Post], per_page: int = 0) -> list[Paginator]:
    """Split chronologically sorted posts into index pages.

    Args:
        posts: Posts in display order.
        per_page: Posts per page; 0 or less puts every post on one page.

    Returns:
        At least one Paginator, even when there are no posts.
    """
    items = list(posts)
    if per_page <= 0:
        per_page = max(len(items), 1)
    chunks = [items[i : i + per_page] for i in range(0, len(items), per_page)] or [[]]
    return [
        Paginator(
            page=number,
            total_pages=len(chunks),
            posts=PostCollection(chunk),
            total_posts=len(items),
        )
        for number, chunk in enumerate(chunks, start=1)
    ]
