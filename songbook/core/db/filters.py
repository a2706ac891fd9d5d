"""
Filter set -> SQL WHERE translation for song listings.

Each known filter name maps to a small clause builder. Builders return
`(clauses, params)` where every clause uses positional `?` placeholders, so
user input never ends up inside the SQL text.

Matching rules:
- `group`, `song`, `link`: exact equality
- `release_date`: exact equality on the stored date (input is `dd.mm.yyyy`)
- `text`: split on whitespace, every token must be contained in the lyrics,
  compared case-insensitively via the `casefold` SQL function that `SongDb`
  registers on its connection

Values are assumed to be syntax-checked already (the web layer does that).
"""

from __future__ import annotations

from typing import Any, Callable

from songbook.core.db.models import SongFilters, date_to_db, parse_release_date

ClauseBuilder = Callable[[str], tuple[list[str], list[Any]]]

# Name of the SQL function registered by `SongDb.open()`.
CASEFOLD_SQL_FUNCTION = "casefold"


def casefold(value: str | None) -> str | None:
    """Python side of the `casefold` SQL function."""
    if value is None:
        return None
    return value.casefold()


def _equals(column: str) -> ClauseBuilder:
    def build(value: str) -> tuple[list[str], list[Any]]:
        return [f"s.{column} = ?"], [value]

    return build


def _release_date_equals(value: str) -> tuple[list[str], list[Any]]:
    return ["s.release_date = ?"], [date_to_db(parse_release_date(value))]


def _text_contains_all(value: str) -> tuple[list[str], list[Any]]:
    tokens = value.split()
    clauses = [f"instr({CASEFOLD_SQL_FUNCTION}(s.text), ?) > 0" for _ in tokens]
    return clauses, [t.casefold() for t in tokens]


FILTER_BUILDERS: dict[str, ClauseBuilder] = {
    "group": _equals("group_name"),
    "song": _equals("song"),
    "release_date": _release_date_equals,
    "text": _text_contains_all,
    "link": _equals("link"),
}


def build_where(filters: SongFilters | None) -> tuple[str, list[Any]]:
    """
    Build a WHERE fragment (including the keyword) and its parameters.

    An empty filter set yields `("", [])`, i.e. an unconstrained query.
    """
    if not filters:
        return "", []

    clauses: list[str] = []
    params: list[Any] = []
    for name, value in filters.items():
        builder = FILTER_BUILDERS.get(name)
        if builder is None:
            raise ValueError(f"Unknown filter: {name!r}")
        field_clauses, field_params = builder(value)
        clauses.extend(field_clauses)
        params.extend(field_params)

    if not clauses:
        return "", []
    return "WHERE " + " AND ".join(clauses), params
