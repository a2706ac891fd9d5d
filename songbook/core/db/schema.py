"""
Songs table schema and forward-only migrations.

- The schema version lives in SQLite's `PRAGMA user_version`.
- Each migration step brings the DB from version N-1 to N; `MIGRATIONS[N-1]`
  holds the statements for step N.
- `group` is an SQL keyword, so the column is called `group_name`; the
  query layer maps it back to the `group` field.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

_SONGS_TABLE = """
CREATE TABLE IF NOT EXISTS songs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_name TEXT NOT NULL,
    song TEXT NOT NULL,

    release_date TEXT,
    text TEXT,
    link TEXT,

    UNIQUE(group_name, song)
)
"""

MIGRATIONS: Final[tuple[tuple[str, ...], ...]] = (
    # 1: base table
    (
        _SONGS_TABLE,
        "CREATE INDEX IF NOT EXISTS idx_songs_song ON songs(song);",
    ),
    # 2: release date is an exact-match filter
    ("CREATE INDEX IF NOT EXISTS idx_songs_release_date ON songs(release_date);",),
)

SCHEMA_VERSION: Final[int] = len(MIGRATIONS)


async def _user_version(conn: aiosqlite.Connection) -> int:
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    return int(row[0]) if row is not None else 0


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """Bring the database up to `SCHEMA_VERSION`."""
    current = await _user_version(conn)
    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported {SCHEMA_VERSION}."
        )
    if current < SCHEMA_VERSION:
        await migrate(conn, from_version=current, to_version=SCHEMA_VERSION)


async def migrate(conn: aiosqlite.Connection, *, from_version: int, to_version: int) -> None:
    """
    Apply migration steps `from_version + 1 .. to_version`.

    Each step is committed together with its version bump, so an interrupted
    run resumes at the first step that did not finish.
    """
    if not 0 <= from_version <= to_version <= SCHEMA_VERSION:
        raise ValueError(f"Cannot migrate from {from_version} to {to_version}")

    for version in range(from_version + 1, to_version + 1):
        for statement in MIGRATIONS[version - 1]:
            await conn.execute(statement)
        await conn.execute(f"PRAGMA user_version = {version};")
        await conn.commit()
