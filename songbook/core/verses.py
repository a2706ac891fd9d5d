"""
Verse splitting and paging over song lyrics.

A verse is a paragraph: lyrics are split on blank lines (two consecutive
newlines). Segments are kept exactly as split, so a trailing blank line
yields a trailing empty verse. Missing or empty lyrics have no verses.
"""

from __future__ import annotations

from dataclasses import dataclass

from songbook.core.pagination import PageRequest, check_page, total_pages

VERSE_SEPARATOR = "\n\n"


@dataclass(frozen=True, slots=True)
class VersePage:
    verses: tuple[str, ...]
    total_pages: int


def split_verses(text: str | None) -> list[str]:
    if not text:
        return []
    return text.split(VERSE_SEPARATOR)


def paginate_verses(text: str | None, request: PageRequest) -> VersePage:
    """
    Return one page of verses.

    Raises:
        PageNotFoundError: page lies past the last verse page.
    """
    verses = split_verses(text)
    pages = total_pages(len(verses), request.limit)
    check_page(request.page, pages)

    start = request.offset
    end = min(start + request.limit, len(verses))
    return VersePage(verses=tuple(verses[start:end]), total_pages=pages)
