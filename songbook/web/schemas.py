"""
Request models and field checks for the songs API.

Syntax checks live here, at the edge: lengths, the `dd.mm.yyyy` date format
and URL shape. The core receives already-typed values.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from songbook.core.db.models import parse_release_date

MAX_NAME_LENGTH = 100
MAX_TEXT_LENGTH = 10_000

_http_url = TypeAdapter(HttpUrl)


def check_release_date(value: str) -> date:
    """Parse a `dd.mm.yyyy` date or raise ValueError with a readable message."""
    try:
        return parse_release_date(value)
    except ValueError:
        raise ValueError("release_date must be a valid date in the format dd.mm.yyyy") from None


def check_link(value: str) -> str:
    """Accept http(s) URLs; the input string is returned unchanged."""
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("link must be a valid URL") from None
    return value


class CreateSongRequest(BaseModel):
    group: str = Field(min_length=1, max_length=MAX_NAME_LENGTH, examples=["Rammstein"])
    song: str = Field(min_length=1, max_length=MAX_NAME_LENGTH, examples=["Weit Weg"])


class UpdateSongRequest(BaseModel):
    """
    Partial update body.

    Which keys were sent matters: omitted keys stay untouched, while
    `release_date`, `text` and `link` sent as null clear the stored value.
    """

    group: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    song: str | None = Field(default=None, min_length=1, max_length=MAX_NAME_LENGTH)
    release_date: date | None = Field(default=None, examples=["17.05.2019"])
    text: str | None = Field(default=None, min_length=1, max_length=MAX_TEXT_LENGTH)
    link: str | None = None

    @field_validator("group", "song")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("group and song cannot be null")
        return value

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> date | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("release_date must be a string in the format dd.mm.yyyy")
        return check_release_date(value)

    @field_validator("link")
    @classmethod
    def _check_link(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return check_link(value)

    def to_update_set(self) -> dict[str, Any]:
        """Only the fields present in the request body."""
        return {name: getattr(self, name) for name in self.model_fields_set}
