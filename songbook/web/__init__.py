"""
Songbook Web Layer.

Components:
- WebServer: FastAPI application with all routes
- routes.songs: REST endpoints for the song catalog
- schemas: request bodies and field syntax checks
"""

from songbook.web.server import WebServer

__all__ = [
    "WebServer",
]
