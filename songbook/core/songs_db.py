"""
Song catalog database schema + access layer.

Goals:
- SQLite + aiosqlite, async/await friendly.
- Every mutation touches exactly one row and is committed on its own.
- Constraint violations surface as domain errors (`ConflictError`,
  `NotFoundError`), anything else propagates untouched.

Note:
- Models/DTOs and date helpers live in `songbook.core.db.models`
- Schema/migrations live in `songbook.core.db.schema`
- Query functions live in `songbook.core.db.queries_songs`
- `SongDb` remains the public facade used by the rest of the codebase
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

import aiosqlite

from songbook.core import ConflictError, NotFoundError
from songbook.core.db import queries_songs
from songbook.core.db.filters import CASEFOLD_SQL_FUNCTION, casefold
from songbook.core.db.models import SongFilters, SongRow, UpdateSet, normalize_text
from songbook.core.db.schema import SCHEMA_VERSION
from songbook.core.db.schema import ensure_schema as ensure_schema_sql

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "SQLITE_CONSTRAINT_UNIQUE"


def _is_unique_violation(exc: sqlite3.Error) -> bool:
    return getattr(exc, "sqlite_errorname", "") == _UNIQUE_VIOLATION


class SongDb:
    """
    Async access layer for the song catalog DB.

    Usage:
        db = SongDb("songbook.sqlite3")
        await db.open()
        await db.ensure_schema()
        ... queries ...
        await db.close()

    Notes:
    - This class is designed to be injected into other components.
    - A single connection is shared; writes are serialized by a lock so one
      coroutine's rollback can never undo another's statement. Reads and
      `ping()` do not take the lock.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode = WAL;")
        await self._conn.execute("PRAGMA synchronous = NORMAL;")
        await self._conn.create_function(
            CASEFOLD_SQL_FUNCTION, 1, casefold, deterministic=True
        )
        logger.info("Opened song database at %s", self._db_path)

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("SongDb is not open. Call await db.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        """Create or migrate schema to current version."""
        conn = self._require_conn()
        await ensure_schema_sql(conn)
        logger.info("Song database schema ready (version %d)", SCHEMA_VERSION)

    async def ping(self) -> bool:
        """Cheap read-only liveness probe."""
        return await queries_songs.ping(self._require_conn())

    # ===========================================================================
    # Writes
    # ===========================================================================

    async def create_song(self, group: str, song: str) -> SongRow:
        """
        Insert a new song with only its group and title set.

        Raises:
            ConflictError: the (group, song) pair already exists.
        """
        conn = self._require_conn()
        group_name = normalize_text(group)
        title = normalize_text(song)
        if not group_name or not title:
            raise ValueError("group and song must be non-empty")

        async with self._write_lock:
            try:
                song_id = await queries_songs.insert_song(conn, group_name, title)
            except sqlite3.Error as e:
                await conn.rollback()
                if _is_unique_violation(e):
                    raise ConflictError(
                        f"song with this name by this group already exists "
                        f"(group: {group_name}, song: {title})"
                    ) from e
                raise
            await conn.commit()

        return SongRow(id=song_id, group=group_name, song=title)

    async def update_song_fields(self, song_id: int, update_set: UpdateSet) -> SongRow:
        """
        Apply a sparse update and return the row as stored afterwards.

        Raises:
            EmptyUpdateError: `update_set` is empty (nothing reaches SQLite).
            NotFoundError: no song with this id.
            ConflictError: the new (group, song) pair is taken.
        """
        conn = self._require_conn()
        async with self._write_lock:
            try:
                touched = await queries_songs.update_song_fields(conn, song_id, update_set)
            except sqlite3.Error as e:
                await conn.rollback()
                if _is_unique_violation(e):
                    raise ConflictError(
                        f"song with this name by this group already exists (id: {song_id})"
                    ) from e
                raise
            if not touched:
                await conn.rollback()
                raise NotFoundError(f"song with this id not found (id: {song_id})")
            await conn.commit()

        row = await queries_songs.get_song_by_id(conn, song_id)
        if row is None:
            # Deleted between our commit and the re-read.
            raise NotFoundError(f"song with this id not found (id: {song_id})")
        return row

    async def delete_song(self, song_id: int) -> None:
        conn = self._require_conn()
        async with self._write_lock:
            try:
                deleted = await queries_songs.delete_song(conn, song_id)
            except sqlite3.Error:
                await conn.rollback()
                raise
            if not deleted:
                await conn.rollback()
                raise NotFoundError(f"song with this id not found (id: {song_id})")
            await conn.commit()

    # ===========================================================================
    # Reads
    # ===========================================================================

    async def get_song_by_id(self, song_id: int) -> SongRow | None:
        return await queries_songs.get_song_by_id(self._require_conn(), song_id)

    async def get_song_text(self, song_id: int) -> str:
        """Lyrics of a song; empty string when none are stored."""
        exists, text = await queries_songs.get_song_text(self._require_conn(), song_id)
        if not exists:
            raise NotFoundError(f"song with this id not found (id: {song_id})")
        return text or ""

    async def list_songs(
        self,
        filters: SongFilters | None = None,
        *,
        limit: int = 10,
        offset: int = 0,
        order_by: str = "id",
    ) -> list[SongRow]:
        return await queries_songs.list_songs(
            self._require_conn(), filters, limit=limit, offset=offset, order_by=order_by
        )

    async def count_songs(self, filters: SongFilters | None = None) -> int:
        return await queries_songs.count_songs(self._require_conn(), filters)
