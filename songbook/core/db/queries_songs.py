"""
Song DB queries used by `songbook.core.songs_db.SongDb`.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return rows/materialized dataclasses.
- Filtering is built by `songbook.core.db.filters.build_where`, ordering by
  `songbook.core.db.ordering.songs_order_clause`.
- These functions assume `conn.row_factory = aiosqlite.Row`.
- Writes do not commit; `SongDb` owns transaction boundaries.

Important:
- Do NOT interpolate user input into SQL. Dynamic SQL here is limited to
  whitelisted ORDER BY fragments and WHERE/SET fragments made of fixed column
  names plus placeholders.
"""

from __future__ import annotations

import aiosqlite

from songbook.core.db.filters import build_where
from songbook.core.db.models import SongFilters, SongRow, UpdateSet, date_from_db
from songbook.core.db.ordering import songs_order_clause
from songbook.core.db.updates import build_set_clause


def _row_to_song(row: aiosqlite.Row) -> SongRow:
    """Convert an aiosqlite Row to a SongRow dataclass."""
    return SongRow(
        id=int(row["id"]),
        group=str(row["group_name"]),
        song=str(row["song"]),
        release_date=date_from_db(row["release_date"]),
        text=row["text"],
        link=row["link"],
    )


# ---------------------------------------------------------------------------
# Basic get/list/count
# ---------------------------------------------------------------------------


async def get_song_by_id(conn: aiosqlite.Connection, song_id: int) -> SongRow | None:
    cursor = await conn.execute("SELECT * FROM songs WHERE id = ?;", (int(song_id),))
    row = await cursor.fetchone()
    return _row_to_song(row) if row else None


async def get_song_text(conn: aiosqlite.Connection, song_id: int) -> tuple[bool, str | None]:
    """Return `(exists, text)` for a song id."""
    cursor = await conn.execute("SELECT text FROM songs WHERE id = ?;", (int(song_id),))
    row = await cursor.fetchone()
    if row is None:
        return False, None
    return True, row["text"]


async def list_songs(
    conn: aiosqlite.Connection,
    filters: SongFilters | None,
    *,
    limit: int,
    offset: int,
    order_by: str,
) -> list[SongRow]:
    where_clause, params = build_where(filters)
    order_clause = songs_order_clause(order_by)
    cursor = await conn.execute(
        f"""
        SELECT * FROM songs s
        {where_clause}
        {order_clause}
        LIMIT ? OFFSET ?;
        """,
        (*params, int(limit), int(offset)),
    )
    rows = await cursor.fetchall()
    return [_row_to_song(r) for r in rows]


async def count_songs(conn: aiosqlite.Connection, filters: SongFilters | None) -> int:
    where_clause, params = build_where(filters)
    cursor = await conn.execute(
        f"SELECT COUNT(*) AS c FROM songs s {where_clause};",
        params,
    )
    row = await cursor.fetchone()
    return int(row["c"]) if row else 0


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def insert_song(conn: aiosqlite.Connection, group: str, song: str) -> int:
    """Insert a bare song row. Returns the new id."""
    cursor = await conn.execute(
        "INSERT INTO songs (group_name, song) VALUES (?, ?);",
        (group, song),
    )
    song_id = cursor.lastrowid
    if song_id is None:
        raise RuntimeError("Insert failed: no row id returned.")
    return int(song_id)


async def update_song_fields(
    conn: aiosqlite.Connection, song_id: int, update_set: UpdateSet
) -> bool:
    """Apply a sparse update. Returns True if a row was touched."""
    set_clause, params = build_set_clause(update_set)
    cursor = await conn.execute(
        f"UPDATE songs SET {set_clause} WHERE id = :song_id;",
        {**params, "song_id": int(song_id)},
    )
    return cursor.rowcount > 0


async def delete_song(conn: aiosqlite.Connection, song_id: int) -> bool:
    """Delete a song by id. Returns True if deleted, False if not found."""
    cursor = await conn.execute("DELETE FROM songs WHERE id = ?;", (int(song_id),))
    return cursor.rowcount > 0


async def ping(conn: aiosqlite.Connection) -> bool:
    cursor = await conn.execute("SELECT 1;")
    row = await cursor.fetchone()
    return row is not None
