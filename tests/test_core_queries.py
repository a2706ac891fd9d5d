"""
Tests for the pure query-building and paging helpers.

These tests verify:
- filter set -> WHERE translation (equality, dates, word-wise text match)
- sparse update set -> SET translation (presence semantics, clearing)
- page arithmetic and the out-of-range policy
- verse splitting and verse paging
- record JSON representation
"""

from __future__ import annotations

from datetime import date

import pytest

from songbook.core import EmptyUpdateError, PageNotFoundError
from songbook.core.db.filters import build_where, casefold
from songbook.core.db.models import (
    SongRow,
    date_from_db,
    format_release_date,
    normalize_text,
    parse_release_date,
    song_to_dict,
)
from songbook.core.db.ordering import songs_order_clause
from songbook.core.db.updates import build_set_clause
from songbook.core.pagination import PageRequest, check_page, total_pages
from songbook.core.verses import paginate_verses, split_verses

# =============================================================================
# Models
# =============================================================================


class TestModels:
    """Tests for date helpers and the record representation."""

    def test_parse_release_date(self) -> None:
        assert parse_release_date("17.05.2019") == date(2019, 5, 17)
        assert parse_release_date(" 01.01.2000 ") == date(2000, 1, 1)

    @pytest.mark.parametrize("value", ["2019-05-17", "32.01.2019", "17.13.2019", ""])
    def test_parse_release_date_rejects_bad_input(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_release_date(value)

    @pytest.mark.parametrize("value", ["17.05.0999", "01.01.0001", "31.12.2024"])
    def test_release_date_round_trip(self, value: str) -> None:
        assert format_release_date(parse_release_date(value)) == value

    def test_format_and_db_dates(self) -> None:
        assert format_release_date(date(2006, 7, 16)) == "16.07.2006"
        assert format_release_date(None) is None
        assert date_from_db("2006-07-16") == date(2006, 7, 16)
        assert date_from_db(None) is None

    def test_normalize_text(self) -> None:
        assert normalize_text("  Muse ") == "Muse"
        assert normalize_text("   ") is None
        assert normalize_text(None) is None

    def test_song_to_dict_omits_empty_fields(self) -> None:
        row = SongRow(id=1, group="Rammstein", song="Weit Weg")
        assert song_to_dict(row) == {"id": 1, "group": "Rammstein", "song": "Weit Weg"}

    def test_song_to_dict_full_record(self) -> None:
        row = SongRow(
            id=3,
            group="Muse",
            song="Supermassive Black Hole",
            release_date=date(2006, 7, 16),
            text="Ooh baby",
            link="https://example.com/muse",
        )
        assert song_to_dict(row) == {
            "id": 3,
            "group": "Muse",
            "song": "Supermassive Black Hole",
            "release_date": "16.07.2006",
            "text": "Ooh baby",
            "link": "https://example.com/muse",
        }


# =============================================================================
# Filters
# =============================================================================


class TestBuildWhere:
    """Tests for filter set translation."""

    def test_empty_filters(self) -> None:
        assert build_where(None) == ("", [])
        assert build_where({}) == ("", [])

    def test_exact_match_fields(self) -> None:
        where, params = build_where({"group": "Muse", "link": "https://x.test"})
        assert where == "WHERE s.group_name = ? AND s.link = ?"
        assert params == ["Muse", "https://x.test"]

    def test_release_date_is_stored_as_iso(self) -> None:
        where, params = build_where({"release_date": "17.05.2019"})
        assert where == "WHERE s.release_date = ?"
        assert params == ["2019-05-17"]

    def test_group_and_text_composition(self) -> None:
        where, params = build_where({"group": "Rammstein", "text": "Mondlicht füllen"})
        assert where == (
            "WHERE s.group_name = ?"
            " AND instr(casefold(s.text), ?) > 0"
            " AND instr(casefold(s.text), ?) > 0"
        )
        assert params == ["Rammstein", "mondlicht", "füllen"]

    def test_text_tokens_are_casefolded(self) -> None:
        _, params = build_where({"text": "  STRASSE   Füllen "})
        assert params == ["strasse", "füllen"]

    def test_blank_text_adds_no_clause(self) -> None:
        assert build_where({"text": "   "}) == ("", [])

    def test_unknown_filter_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown filter"):
            build_where({"genre": "Metal"})

    def test_casefold_function(self) -> None:
        assert casefold("Straße") == "strasse"
        assert casefold(None) is None


class TestOrdering:
    def test_default_and_unknown_fall_back_to_id(self) -> None:
        assert songs_order_clause("id") == "ORDER BY s.id ASC"
        assert songs_order_clause("nonsense") == "ORDER BY s.id ASC"

    def test_every_variant_ends_on_id(self) -> None:
        for key in ("group", "song", "release_date"):
            assert songs_order_clause(key).endswith("s.id ASC")


# =============================================================================
# Updates
# =============================================================================


class TestBuildSetClause:
    """Tests for sparse update translation."""

    def test_only_present_fields_are_written(self) -> None:
        clause, params = build_set_clause({"text": "A\n\nB"})
        assert clause == "text = :text"
        assert params == {"text": "A\n\nB"}

    def test_multiple_fields(self) -> None:
        clause, params = build_set_clause(
            {"group": "Muse", "release_date": date(2006, 7, 16)}
        )
        assert clause == "group_name = :group_name, release_date = :release_date"
        assert params == {"group_name": "Muse", "release_date": "2006-07-16"}

    def test_none_clears_optional_fields(self) -> None:
        clause, params = build_set_clause({"link": None, "release_date": None})
        assert clause == "link = :link, release_date = :release_date"
        assert params == {"link": None, "release_date": None}

    def test_empty_update_rejected(self) -> None:
        with pytest.raises(EmptyUpdateError):
            build_set_clause({})

    @pytest.mark.parametrize("field", ["group", "song"])
    def test_required_fields_cannot_be_cleared(self, field: str) -> None:
        with pytest.raises(ValueError, match="cannot be cleared"):
            build_set_clause({field: None})

    @pytest.mark.parametrize("field", ["group", "song"])
    def test_required_fields_cannot_be_blank(self, field: str) -> None:
        with pytest.raises(ValueError, match="must be non-empty"):
            build_set_clause({field: "   "})

    def test_required_fields_are_stripped(self) -> None:
        _, params = build_set_clause({"group": " Muse ", "song": "Uprising "})
        assert params == {"group_name": "Muse", "song": "Uprising"}

    def test_release_date_must_be_a_date(self) -> None:
        with pytest.raises(ValueError):
            build_set_clause({"release_date": "17.05.2019"})

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown update field"):
            build_set_clause({"id": 5})


# =============================================================================
# Pagination
# =============================================================================


class TestPagination:
    """Tests for page arithmetic."""

    def test_total_pages(self) -> None:
        assert total_pages(0, 10) == 0
        assert total_pages(1, 10) == 1
        assert total_pages(10, 10) == 1
        assert total_pages(11, 10) == 2
        assert total_pages(3, 2) == 2

    def test_page_request_offset(self) -> None:
        assert PageRequest().offset == 0
        assert PageRequest(page=3, limit=10).offset == 20

    @pytest.mark.parametrize(
        ("page", "limit"),
        [(0, 10), (1, 0), (1, 101), (-1, 5)],
    )
    def test_page_request_validation(self, page: int, limit: int) -> None:
        with pytest.raises(ValueError):
            PageRequest(page=page, limit=limit)

    def test_first_page_of_empty_result_is_valid(self) -> None:
        check_page(1, 0)

    def test_page_past_end(self) -> None:
        check_page(2, 2)
        with pytest.raises(PageNotFoundError) as exc_info:
            check_page(3, 2)
        assert exc_info.value.page == 3
        assert exc_info.value.total_pages == 2

    def test_second_page_of_empty_result(self) -> None:
        with pytest.raises(PageNotFoundError):
            check_page(2, 0)


# =============================================================================
# Verses
# =============================================================================


class TestVerses:
    """Tests for verse splitting and paging."""

    def test_split(self) -> None:
        assert split_verses("A\n\nB\n\nC") == ["A", "B", "C"]

    def test_split_keeps_single_newlines_inside_verse(self) -> None:
        assert split_verses("line 1\nline 2\n\nline 3") == ["line 1\nline 2", "line 3"]

    def test_split_trailing_separator_yields_empty_verse(self) -> None:
        assert split_verses("A\n\n") == ["A", ""]

    def test_split_empty(self) -> None:
        assert split_verses("") == []
        assert split_verses(None) == []

    def test_paginate(self) -> None:
        first = paginate_verses("A\n\nB\n\nC", PageRequest(page=1, limit=2))
        assert first.verses == ("A", "B")
        assert first.total_pages == 2

        second = paginate_verses("A\n\nB\n\nC", PageRequest(page=2, limit=2))
        assert second.verses == ("C",)
        assert second.total_pages == 2

    def test_paginate_past_end(self) -> None:
        with pytest.raises(PageNotFoundError):
            paginate_verses("A\n\nB\n\nC", PageRequest(page=3, limit=2))

    def test_paginate_no_lyrics(self) -> None:
        page = paginate_verses("", PageRequest(page=1, limit=2))
        assert page.verses == ()
        assert page.total_pages == 0
        with pytest.raises(PageNotFoundError):
            paginate_verses(None, PageRequest(page=2, limit=2))
