"""
DB models (DTOs) and small conversion helpers for the songs table.

This module is intentionally lightweight:
- No DB connection knowledge
- No SQL
- Pure dataclasses + helper functions

Dates travel in two shapes: ISO strings (`YYYY-MM-DD`) inside SQLite and the
`dd.mm.yyyy` wire format everywhere a caller sees them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Final, Mapping

# Wire format for release dates (e.g. "17.05.2019").
DATE_FORMAT: Final[str] = "%d.%m.%Y"

# Filter set / update set: sparse mappings keyed by wire field name.
SongFilters = Mapping[str, str]
UpdateSet = Mapping[str, Any]

# Field names shared by filters, updates and the JSON representation.
SONG_FIELDS: Final[tuple[str, ...]] = ("group", "song", "release_date", "text", "link")


@dataclass(frozen=True, slots=True)
class SongRow:
    """
    Song record as stored in SQLite.

    Notes:
    - `(group, song)` is unique across the table.
    - Optional fields stay `None` until enrichment or an explicit update sets them.
    """

    id: int
    group: str
    song: str
    release_date: date | None = None
    text: str | None = None
    link: str | None = None


def parse_release_date(value: str) -> date:
    """Parse a `dd.mm.yyyy` string. Raises ValueError on anything else."""
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def format_release_date(value: date | None) -> str | None:
    if value is None:
        return None
    # strftime does not zero-pad years below 1000 on every platform.
    return f"{value.day:02d}.{value.month:02d}.{value.year:04d}"


def date_from_db(value: str | None) -> date | None:
    """Stored dates are ISO strings; tolerate NULL."""
    if not value:
        return None
    return date.fromisoformat(value)


def date_to_db(value: date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def normalize_text(value: str | None) -> str | None:
    """
    Normalize required name fields:
    - strip whitespace
    - coerce empty strings to None
    """
    if value is None:
        return None
    v = value.strip()
    return v if v else None


def song_to_dict(row: SongRow) -> dict[str, Any]:
    """
    JSON representation of a song.

    Optional fields are only included when they carry a value.
    """
    result: dict[str, Any] = {"id": row.id, "group": row.group, "song": row.song}
    release_date = format_release_date(row.release_date)
    if release_date:
        result["release_date"] = release_date
    if row.text:
        result["text"] = row.text
    if row.link:
        result["link"] = row.link
    return result
