"""
Internal DB subpackage for Songbook.

Splits the storage layer into focused units (models, schema/migrations,
filter/update builders and queries) while keeping `SongDb` as the single
public interface the rest of the codebase imports.

External code should import `SongDb` from `songbook.core.songs_db`.
"""

from __future__ import annotations

# Models / DTOs
from .models import SongFilters, SongRow, UpdateSet

# Schema / migrations
from .schema import ensure_schema, migrate

__all__ = [
    # models
    "SongRow",
    "SongFilters",
    "UpdateSet",
    # schema
    "ensure_schema",
    "migrate",
]
