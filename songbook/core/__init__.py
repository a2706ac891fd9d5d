"""
Core domain package.

This package contains the catalog business logic, independent of the web layer.
Filters, updates, pagination and verse splitting are pure functions; storage
lives behind `SongDb` and enrichment behind `EnrichmentWorker`.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `songbook.core.catalog`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "NotFoundError",
    "ConflictError",
    "PageNotFoundError",
    "EmptyUpdateError",
    "MetadataLookupError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class NotFoundError(CoreError):
    """Raised when a song with the given id does not exist."""


class ConflictError(CoreError):
    """Raised when a (group, song) pair is already taken by another record."""


class PageNotFoundError(CoreError):
    """Raised when the requested page is past the last page of a result."""

    def __init__(self, page: int, total_pages: int) -> None:
        super().__init__(f"page {page} does not exist (total pages: {total_pages})")
        self.page = page
        self.total_pages = total_pages


class EmptyUpdateError(CoreError):
    """Raised when an update carries no fields at all."""


class MetadataLookupError(CoreError):
    """Raised when the external metadata source cannot provide song details."""
