"""
Background enrichment of newly created songs.

After a song is created the catalog hands a job to the `EnrichmentWorker`.
The worker asks the external metadata source for release date, lyrics and
link, and writes whatever subset comes back. It is strictly best effort:

- `submit()` never blocks and never raises into the request path
- each job gets exactly one attempt; failures are logged and dropped
- the only channel back to the rest of the system is the database

Explicit updates of the same song can race with a pending job. Whichever
write lands last wins; that is accepted behaviour.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

import httpx

from songbook.core import MetadataLookupError, NotFoundError
from songbook.core.db.models import parse_release_date
from songbook.core.songs_db import SongDb

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_CONCURRENCY = 2


class JobState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class JobOutcome(Enum):
    UPDATED = "updated"
    NO_DETAILS = "no_details"
    LOOKUP_FAILED = "lookup_failed"
    SONG_GONE = "song_gone"
    FAILED = "failed"


@dataclass
class EnrichmentJob:
    """One enrichment attempt for one freshly created song."""

    song_id: int
    group: str
    song: str
    state: JobState = JobState.PENDING
    outcome: JobOutcome | None = None

    def resolve(self, outcome: JobOutcome) -> None:
        self.state = JobState.RESOLVED
        self.outcome = outcome


@dataclass(frozen=True, slots=True)
class SongDetails:
    """Details returned by the metadata source. `None` means "not provided"."""

    release_date: date | None = None
    text: str | None = None
    link: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> SongDetails:
        """
        Validate a decoded JSON payload.

        Raises:
            MetadataLookupError: payload is not an object, a field has the
                wrong type, or the release date is not `dd.mm.yyyy`.
        """
        if not isinstance(payload, dict):
            raise MetadataLookupError(
                f"expected a JSON object, got {type(payload).__name__}"
            )

        values: dict[str, str | None] = {}
        for key in ("release_date", "text", "link"):
            value = payload.get(key)
            if value is not None and not isinstance(value, str):
                raise MetadataLookupError(f"field {key!r} must be a string")
            values[key] = value

        release_date: date | None = None
        if values["release_date"] is not None:
            try:
                release_date = parse_release_date(values["release_date"])
            except ValueError as e:
                raise MetadataLookupError(
                    f"invalid release_date {values['release_date']!r}"
                ) from e

        return cls(release_date=release_date, text=values["text"], link=values["link"])

    def to_update_set(self) -> dict[str, Any]:
        """Only the fields the source actually provided."""
        update: dict[str, Any] = {}
        if self.release_date is not None:
            update["release_date"] = self.release_date
        if self.text is not None:
            update["text"] = self.text
        if self.link is not None:
            update["link"] = self.link
        return update


class MetadataClient:
    """
    Thin async client for the external song info API.

    `GET {base_url}/info?group=<group>&song=<song>` answering a JSON object
    with optional `release_date`, `text` and `link`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def open(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None

    async def fetch_details(self, group: str, song: str) -> SongDetails:
        """
        Look a song up.

        Raises:
            MetadataLookupError: network error, timeout, non-200 status, or a
                body that is not a valid details object.
        """
        if self._client is None:
            await self.open()
        assert self._client is not None

        try:
            response = await self._client.get("/info", params={"group": group, "song": song})
        except httpx.HTTPError as e:
            raise MetadataLookupError(f"error sending request: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise MetadataLookupError(
                f"response error with status code {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MetadataLookupError(f"error decoding response: {e}") from e

        return SongDetails.from_payload(payload)


class EnrichmentWorker:
    """
    Queue-backed pool of consumer tasks that enrich songs after creation.

    Usage:
        worker = EnrichmentWorker(db=db, client=MetadataClient(url))
        await worker.start()
        worker.submit(song.id, song.group, song.song)
        ...
        await worker.stop()
    """

    def __init__(
        self,
        *,
        db: SongDb,
        client: MetadataClient,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._db = db
        self._client = client
        self._concurrency = concurrency
        self._queue: asyncio.Queue[EnrichmentJob] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if self._tasks:
            return
        await self._client.open()
        self._tasks = [
            asyncio.create_task(self._consume(), name=f"enrichment-{i}")
            for i in range(self._concurrency)
        ]
        logger.info(
            "Enrichment worker started (%d consumers, source %s)",
            self._concurrency,
            self._client.base_url,
        )

    async def stop(self, *, drain_timeout: float = 5.0) -> None:
        """Give queued jobs a moment to finish, then cancel the consumers."""
        if self._tasks:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            if self._queue.qsize():
                logger.warning("Dropping %d unprocessed enrichment jobs", self._queue.qsize())

            for task in self._tasks:
                task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks = []

        await self._client.close()
        logger.info("Enrichment worker stopped")

    def submit(self, song_id: int, group: str, song: str) -> EnrichmentJob:
        """Queue a job for a committed song. Never blocks."""
        job = EnrichmentJob(song_id=song_id, group=group, song=song)
        self._queue.put_nowait(job)
        logger.debug("Queued enrichment for song %d (%s - %s)", song_id, group, song)
        return job

    async def drain(self) -> None:
        """Wait until every submitted job has been resolved."""
        await self._queue.join()

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            except Exception:
                logger.exception("Enrichment failed for song %d", job.song_id)
                job.resolve(JobOutcome.FAILED)
            finally:
                self._queue.task_done()

    async def process(self, job: EnrichmentJob) -> None:
        """Run the single fetch-and-persist attempt for `job`."""
        try:
            details = await self._client.fetch_details(job.group, job.song)
        except MetadataLookupError as e:
            logger.error(
                "Error getting song details (id: %d, group: %s, song: %s): %s",
                job.song_id,
                job.group,
                job.song,
                e,
            )
            job.resolve(JobOutcome.LOOKUP_FAILED)
            return

        update_set = details.to_update_set()
        if not update_set:
            logger.warning(
                "Details for song not found (id: %d, group: %s, song: %s)",
                job.song_id,
                job.group,
                job.song,
            )
            job.resolve(JobOutcome.NO_DETAILS)
            return

        try:
            await self._db.update_song_fields(job.song_id, update_set)
        except NotFoundError:
            logger.warning("Song %d was deleted before its details arrived", job.song_id)
            job.resolve(JobOutcome.SONG_GONE)
            return

        logger.info(
            "Details added for song %d (%s)", job.song_id, ", ".join(sorted(update_set))
        )
        job.resolve(JobOutcome.UPDATED)
