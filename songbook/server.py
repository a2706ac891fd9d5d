"""
Songbook Server - Main Server Module

This module contains the SongbookServer class that wires all components
together and manages the application lifecycle.
"""

import asyncio
import logging
import signal

from songbook.config import ServiceConfig
from songbook.core.catalog import SongCatalog
from songbook.core.enrichment import EnrichmentWorker, MetadataClient
from songbook.core.health import DbHealthMonitor
from songbook.core.songs_db import SongDb
from songbook.web.server import WebServer

logger = logging.getLogger(__name__)


class SongbookServer:
    """
    Main Songbook server that coordinates all components.

    The server manages:
    - the SQLite song database
    - the song catalog facade
    - the enrichment worker (when a metadata API is configured)
    - the database liveness monitor
    - the HTTP API
    """

    def __init__(self, config: ServiceConfig) -> None:
        self.config = config

        self.song_db = SongDb(config.db_path)

        self.enrichment: EnrichmentWorker | None = None
        if config.enrichment_enabled:
            self.enrichment = EnrichmentWorker(
                db=self.song_db,
                client=MetadataClient(
                    config.metadata_api_url, timeout=config.metadata_timeout_s
                ),
                concurrency=config.enrichment_workers,
            )

        self.catalog = SongCatalog(db=self.song_db, enrichment=self.enrichment)

        self.health_monitor = DbHealthMonitor(
            self.song_db,
            interval=config.db_ping_interval_s,
            max_failures=config.db_ping_max_failures,
            on_fatal=self.request_shutdown,
        )

        self.web_server: WebServer | None = None

        # Server state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Start all server components."""
        logger.info("Starting Songbook server on %s:%d", self.config.host, self.config.port)

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.song_db.open()
        await self.catalog.initialize()

        if self.enrichment is not None:
            await self.enrichment.start()
        else:
            logger.info("No metadata API configured, song enrichment disabled")

        await self.health_monitor.start()

        self.web_server = WebServer(catalog=self.catalog)
        await self.web_server.start(host=self.config.host, port=self.config.port)

        logger.info("Songbook server started successfully")

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        if not self._running:
            return

        logger.info("Stopping Songbook server...")
        self._running = False

        # Stop Web server first so no new songs arrive
        if self.web_server:
            await self.web_server.stop()

        await self.health_monitor.stop()

        if self.enrichment is not None:
            await self.enrichment.stop()

        # Close DB last, after all components are stopped.
        await self.song_db.close()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("Songbook server stopped")

    def request_shutdown(self) -> None:
        """Ask `run()` to stop the server."""
        if self._shutdown_event:
            self._shutdown_event.set()

    async def run(self) -> None:
        """
        Run the server until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM) or a fatal database health failure.
        """
        await self.start()

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running
