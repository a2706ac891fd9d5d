"""
Sparse update set -> SQL SET clause.

Only the fields present in the update set are written; every other column is
left as it is. Presence is what counts: a key mapped to `None` clears the
column, a missing key leaves it alone.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

from songbook.core import EmptyUpdateError
from songbook.core.db.models import UpdateSet, date_to_db, normalize_text

ValueEncoder = Callable[[Any], Any]


def _required_text(field: str) -> ValueEncoder:
    def encode(value: Any) -> Any:
        if value is None:
            raise ValueError(f"{field} cannot be cleared")
        text = normalize_text(str(value))
        if text is None:
            raise ValueError(f"{field} must be non-empty")
        return text

    return encode


def _optional_text(value: Any) -> Any:
    return None if value is None else str(value)


def _optional_date(value: Any) -> Any:
    if value is not None and not isinstance(value, date):
        raise ValueError(f"release_date must be a date, got {type(value).__name__}")
    return date_to_db(value)


# field name -> (column, encoder)
UPDATE_COLUMNS: dict[str, tuple[str, ValueEncoder]] = {
    "group": ("group_name", _required_text("group")),
    "song": ("song", _required_text("song")),
    "release_date": ("release_date", _optional_date),
    "text": ("text", _optional_text),
    "link": ("link", _optional_text),
}


def build_set_clause(update_set: UpdateSet) -> tuple[str, dict[str, Any]]:
    """
    Build `col = :col, ...` for the supplied fields and the matching named params.

    Raises:
        EmptyUpdateError: no fields supplied.
        ValueError: unknown field, or a required field set to None.
    """
    if not update_set:
        raise EmptyUpdateError("at least one field must be provided for update")

    assignments: list[str] = []
    params: dict[str, Any] = {}
    for name, value in update_set.items():
        entry = UPDATE_COLUMNS.get(name)
        if entry is None:
            raise ValueError(f"Unknown update field: {name!r}")
        column, encode = entry
        assignments.append(f"{column} = :{column}")
        params[column] = encode(value)

    return ", ".join(assignments), params
