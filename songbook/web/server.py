"""
Web Server Module for Songbook.

This module provides the WebServer class that creates and manages the
FastAPI application, registers all routes, and runs uvicorn in the
background of the server's event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from songbook import __version__
from songbook.web.routes.songs import register_song_routes

if TYPE_CHECKING:
    from songbook.core.catalog import SongCatalog

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{location}: {err.get('msg', 'invalid value')}" if location else err["msg"])
    return "; ".join(parts)


class WebServer:
    """FastAPI-based web server exposing the song catalog."""

    def __init__(self, catalog: SongCatalog) -> None:
        """
        Initialize the WebServer.

        Args:
            catalog: Initialized song catalog.
        """
        self.catalog = catalog

        self.app = FastAPI(
            title="Songbook",
            description="Song catalog with background metadata enrichment",
            version=__version__,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Server state
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "0.0.0.0"
        self._port = 8080

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "songbook"}

        @self.app.exception_handler(RequestValidationError)
        async def validation_error_handler(
            request: Request, exc: RequestValidationError
        ) -> JSONResponse:
            message = _describe_validation_error(exc)
            logger.warning("Invalid request %s %s: %s", request.method, request.url.path, message)
            return JSONResponse(
                status_code=400,
                content={"detail": {"error": "invalid request", "message": message}},
            )

        register_song_routes(self.app, catalog=self.catalog)

    async def start(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        """
        Start the web server.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        # Start server in background
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            await asyncio.gather(self._serve_task, return_exceptions=True)
            self._serve_task = None

        logger.info("Web server stopped")
