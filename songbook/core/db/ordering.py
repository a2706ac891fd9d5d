"""
Shared ORDER BY clause helpers for song list queries.

Important:
- The returned strings are *static SQL fragments* selected from a small
  whitelist. Do NOT concatenate user input into ORDER BY.
"""

from __future__ import annotations

from typing import Literal

SongsOrderBy = Literal[
    "id",
    "group",
    "song",
    "release_date",
]


def songs_order_clause(order_by: str) -> str:
    """
    Return an ORDER BY clause for song list queries.

    Every variant ends on `s.id` so paging stays stable. Unknown values fall
    back to insertion order.
    """
    if order_by == "group":
        return "ORDER BY s.group_name COLLATE NOCASE ASC, s.song COLLATE NOCASE ASC, s.id ASC"
    if order_by == "song":
        return "ORDER BY s.song COLLATE NOCASE ASC, s.id ASC"
    if order_by == "release_date":
        # Undated songs last.
        return "ORDER BY s.release_date IS NULL, s.release_date ASC, s.id ASC"

    # Default: id
    return "ORDER BY s.id ASC"
