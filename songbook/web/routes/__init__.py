"""
Web Routes Package.

This package contains FastAPI route modules:
- songs: song catalog endpoints (/songs, /songs/{id})
"""

from songbook.web.routes.songs import register_song_routes

__all__ = [
    "register_song_routes",
]
