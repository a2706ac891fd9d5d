"""
SongCatalog: the facade the web layer talks to.

It combines `SongDb` storage, page arithmetic, verse splitting and the
optional enrichment hand-off. Listing and verse paging share one
out-of-range policy (see `songbook.core.pagination`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from songbook.core import EmptyUpdateError, NotFoundError
from songbook.core.db.models import SongRow, UpdateSet
from songbook.core.enrichment import EnrichmentWorker
from songbook.core.pagination import PageRequest, check_page, total_pages
from songbook.core.songs_db import SongDb
from songbook.core.verses import VersePage, paginate_verses

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SongPage:
    songs: tuple[SongRow, ...]
    total_pages: int


class SongCatalogError(RuntimeError):
    """Base error for SongCatalog operations."""


class SongCatalogNotReadyError(SongCatalogError):
    """Raised when operations are attempted before the catalog is initialized."""


class SongCatalog:
    """
    High-level facade for the song catalog.

    Dependencies:
    - `SongDb` for persistence
    - optional `EnrichmentWorker`; without one, new songs are simply not enriched

    Domain errors (`NotFoundError`, `ConflictError`, `PageNotFoundError`,
    `EmptyUpdateError`) propagate to the caller; storage errors propagate
    untouched.
    """

    def __init__(self, *, db: SongDb, enrichment: EnrichmentWorker | None = None) -> None:
        self._db = db
        self._enrichment = enrichment
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def enrichment(self) -> EnrichmentWorker | None:
        return self._enrichment

    async def initialize(self) -> None:
        """
        Prepare the catalog.

        Contract:
        - `SongDb` must already be open.
        - schema/migrations are ensured here for convenience.
        """
        if not self._db.is_open:
            raise SongCatalogError("SongDb is not open. Open it before initializing SongCatalog.")

        await self._db.ensure_schema()
        self._initialized = True

    # ---- Writes ----

    async def create_song(self, group: str, song: str) -> SongRow:
        """
        Store a new song and schedule its enrichment.

        The returned row only carries id, group and song; details arrive later,
        if at all.
        """
        self._require_initialized()
        row = await self._db.create_song(group, song)

        if self._enrichment is not None:
            try:
                self._enrichment.submit(row.id, row.group, row.song)
            except Exception:
                logger.exception("Could not schedule enrichment for song %d", row.id)

        return row

    async def update_song(self, song_id: int, update_set: UpdateSet) -> SongRow:
        """
        Apply a partial update. Only the supplied fields change.

        Returns the full song as stored after the update.
        """
        self._require_initialized()
        if not update_set:
            raise EmptyUpdateError("at least one field must be provided for update")
        return await self._db.update_song_fields(song_id, update_set)

    async def delete_song(self, song_id: int) -> None:
        self._require_initialized()
        await self._db.delete_song(song_id)

    # ---- Reads ----

    async def get_song(self, song_id: int) -> SongRow:
        self._require_initialized()
        row = await self._db.get_song_by_id(song_id)
        if row is None:
            raise NotFoundError(f"song with this id not found (id: {song_id})")
        return row

    async def list_songs(
        self,
        filters: Mapping[str, str | None] | None = None,
        request: PageRequest | None = None,
        *,
        order_by: str = "id",
    ) -> SongPage:
        """
        One page of songs matching `filters`, plus the total page count.

        Filters mapped to None are ignored. Raises PageNotFoundError for a page
        past the end.
        """
        self._require_initialized()
        request = request or PageRequest()
        active = {k: v for k, v in (filters or {}).items() if v is not None}

        total = await self._db.count_songs(active)
        pages = total_pages(total, request.limit)
        check_page(request.page, pages)
        if total == 0:
            return SongPage(songs=(), total_pages=0)

        rows = await self._db.list_songs(
            active, limit=request.limit, offset=request.offset, order_by=order_by
        )
        return SongPage(songs=tuple(rows), total_pages=pages)

    async def get_verses(self, song_id: int, request: PageRequest) -> VersePage:
        """One page of the song's verses."""
        self._require_initialized()
        text = await self._db.get_song_text(song_id)
        return paginate_verses(text, request)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SongCatalogNotReadyError(
                "SongCatalog is not initialized. Call await SongCatalog.initialize() first."
            )
