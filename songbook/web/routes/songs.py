"""
REST API Routes for the song catalog.

- GET    /songs             filtered, paginated listing
- GET    /songs/{song_id}   paginated verses of one song
- POST   /songs             create (enrichment runs in the background)
- PUT    /songs/{song_id}   partial update
- DELETE /songs/{song_id}   delete

Errors are reported as `{"detail": {"error": ..., "message": ...}}`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Path, Query

from songbook.core import ConflictError, EmptyUpdateError, NotFoundError, PageNotFoundError
from songbook.core.db.models import song_to_dict
from songbook.core.db.ordering import SongsOrderBy
from songbook.core.pagination import (
    DEFAULT_PAGE,
    DEFAULT_SONGS_LIMIT,
    DEFAULT_VERSES_LIMIT,
    MAX_LIMIT,
    PageRequest,
)
from songbook.web.schemas import (
    MAX_NAME_LENGTH,
    MAX_TEXT_LENGTH,
    CreateSongRequest,
    UpdateSongRequest,
    check_link,
    check_release_date,
)

if TYPE_CHECKING:
    from songbook.core.catalog import SongCatalog

logger = logging.getLogger(__name__)

router = APIRouter(tags=["songs"])

# Reference set during route registration
_catalog: SongCatalog | None = None

ERR_GETTING_SONGS = "error getting songs"
ERR_GETTING_SONG_TEXT = "error getting song text"
ERR_CREATING_SONG = "error creating song"
ERR_UPDATING_SONG = "error updating song"
ERR_DELETING_SONG = "error deleting song"
ERR_INVALID_PARAMS = "invalid get songs param"


def register_song_routes(app, catalog: SongCatalog) -> None:
    """
    Register song routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        catalog: Initialized SongCatalog
    """
    global _catalog
    _catalog = catalog
    app.include_router(router)


def _require_catalog() -> SongCatalog:
    if _catalog is None:
        raise HTTPException(status_code=503, detail="Catalog not initialized")
    return _catalog


def _client_error(status_code: int, error: str, exc: Exception) -> HTTPException:
    logger.warning("%s: %s", error, exc)
    return HTTPException(status_code=status_code, detail={"error": error, "message": str(exc)})


def _server_error(error: str) -> HTTPException:
    logger.exception(error)
    return HTTPException(status_code=500, detail={"error": error})


@router.get("/songs")
async def list_songs(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_SONGS_LIMIT, ge=1, le=MAX_LIMIT),
    group: str | None = Query(None, min_length=1, max_length=MAX_NAME_LENGTH),
    song: str | None = Query(None, min_length=1, max_length=MAX_NAME_LENGTH),
    release_date: str | None = Query(None, description="dd.mm.yyyy"),
    text: str | None = Query(None, min_length=1, max_length=MAX_TEXT_LENGTH),
    link: str | None = Query(None),
    order_by: SongsOrderBy = Query("id"),
) -> dict[str, Any]:
    """List songs. All filters combine with AND; `text` matches every word."""
    catalog = _require_catalog()

    try:
        if release_date is not None:
            check_release_date(release_date)
        if link is not None:
            check_link(link)
    except ValueError as e:
        raise _client_error(400, ERR_INVALID_PARAMS, e) from None

    filters = {
        "group": group,
        "song": song,
        "release_date": release_date,
        "text": text,
        "link": link,
    }

    try:
        result = await catalog.list_songs(
            filters, PageRequest(page=page, limit=limit), order_by=order_by
        )
    except PageNotFoundError as e:
        raise _client_error(404, ERR_GETTING_SONGS, e) from None
    except Exception:
        raise _server_error(ERR_GETTING_SONGS) from None

    return {
        "songs": [song_to_dict(row) for row in result.songs],
        "total_pages": result.total_pages,
    }


@router.get("/songs/{song_id}")
async def get_song_verses(
    song_id: int = Path(ge=1),
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_VERSES_LIMIT, ge=1, le=MAX_LIMIT),
) -> dict[str, Any]:
    """Get one page of a song's verses."""
    catalog = _require_catalog()

    try:
        result = await catalog.get_verses(song_id, PageRequest(page=page, limit=limit))
    except (NotFoundError, PageNotFoundError) as e:
        raise _client_error(404, ERR_GETTING_SONG_TEXT, e) from None
    except Exception:
        raise _server_error(ERR_GETTING_SONG_TEXT) from None

    return {"verses": list(result.verses), "total_pages": result.total_pages}


@router.post("/songs", status_code=201)
async def create_song(body: CreateSongRequest) -> dict[str, Any]:
    """Create a song. Details are looked up in the background."""
    catalog = _require_catalog()

    try:
        row = await catalog.create_song(body.group, body.song)
    except (ConflictError, ValueError) as e:
        raise _client_error(400, ERR_CREATING_SONG, e) from None
    except Exception:
        raise _server_error(ERR_CREATING_SONG) from None

    return {"id": row.id, "group": row.group, "song": row.song}


@router.put("/songs/{song_id}")
async def update_song(body: UpdateSongRequest, song_id: int = Path(ge=1)) -> dict[str, Any]:
    """Update only the fields present in the body."""
    catalog = _require_catalog()

    try:
        row = await catalog.update_song(song_id, body.to_update_set())
    except NotFoundError as e:
        raise _client_error(404, ERR_UPDATING_SONG, e) from None
    except (ConflictError, EmptyUpdateError, ValueError) as e:
        raise _client_error(400, ERR_UPDATING_SONG, e) from None
    except Exception:
        raise _server_error(ERR_UPDATING_SONG) from None

    return song_to_dict(row)


@router.delete("/songs/{song_id}")
async def delete_song(song_id: int = Path(ge=1)) -> None:
    """Delete a song."""
    catalog = _require_catalog()

    try:
        await catalog.delete_song(song_id)
    except NotFoundError as e:
        raise _client_error(404, ERR_DELETING_SONG, e) from None
    except Exception:
        raise _server_error(ERR_DELETING_SONG) from None
