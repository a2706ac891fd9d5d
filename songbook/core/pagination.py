"""
Page arithmetic shared by song listings and verse listings.

Out-of-range policy (same for both paths):
- `total_pages = ceil(total / limit)`, 0 for an empty result
- page 1 is always valid, so an empty catalog answers with an empty page
- any page past `max(total_pages, 1)` raises `PageNotFoundError`
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from songbook.core import PageNotFoundError

DEFAULT_PAGE: Final[int] = 1
DEFAULT_SONGS_LIMIT: Final[int] = 10
DEFAULT_VERSES_LIMIT: Final[int] = 2
MAX_LIMIT: Final[int] = 100


@dataclass(frozen=True, slots=True)
class PageRequest:
    """A 1-indexed page of `limit` items."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_SONGS_LIMIT

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.limit > MAX_LIMIT:
            raise ValueError(f"limit must be <= {MAX_LIMIT}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def total_pages(total_count: int, limit: int) -> int:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if total_count <= 0:
        return 0
    return -(-total_count // limit)


def check_page(page: int, pages: int) -> None:
    """Raise PageNotFoundError if `page` lies past the last page."""
    if page > max(pages, 1):
        raise PageNotFoundError(page, pages)
