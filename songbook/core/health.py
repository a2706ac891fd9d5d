"""
Periodic storage liveness check.

Pings the database on a fixed interval. Consecutive failures are counted;
when the count reaches the limit the `on_fatal` callback fires (the server
uses it to request shutdown). A successful ping after failures resets the
counter and logs the recovery.

The monitor is read-only and shares no locks with catalog operations.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from songbook.core.songs_db import SongDb

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0
DEFAULT_MAX_FAILURES = 10


class DbHealthMonitor:
    def __init__(
        self,
        db: SongDb,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_failures: int = DEFAULT_MAX_FAILURES,
        on_fatal: Callable[[], None] | None = None,
    ) -> None:
        self._db = db
        self._interval = interval
        self._max_failures = max_failures
        self._on_fatal = on_fatal
        self._failures = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def failures(self) -> int:
        return self._failures

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="db-health")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def check_once(self) -> bool:
        """
        Run one probe and update the failure counter.

        Returns:
            False once the failure limit has been reached.
        """
        try:
            await self._db.ping()
        except Exception as e:
            self._failures += 1
            logger.warning(
                "Database ping failed (%d/%d): %s", self._failures, self._max_failures, e
            )
            if self._failures >= self._max_failures:
                logger.error("Database unreachable after %d attempts", self._failures)
                if self._on_fatal is not None:
                    self._on_fatal()
                return False
            return True

        if self._failures:
            logger.info("Database connection recovered after %d failed pings", self._failures)
            self._failures = 0
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if not await self.check_once():
                return
