"""
Songbook - a song catalog service.

Stores songs (group, title, release date, lyrics, link), serves filtered and
paginated listings and paginated verses, and enriches new songs in the
background from an external metadata API.
"""

__version__ = "0.1.0"

from songbook.server import SongbookServer

__all__ = ["SongbookServer", "__version__"]
