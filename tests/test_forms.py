"""Unit tests for ui.forms — editor and list helpers."""

from __future__ import annotations

from notes.models import Note
from ui.forms import (
    TITLE_MAX_LENGTH,
    format_tags,
    format_timestamp,
    header_title,
    parse_tags,
    snippet,
    validate_title,
)


def _note(title: str = "Groceries") -> Note:
    return Note(
        id="1-a",
        title=title,
        created_at="2024-03-05T09:30:00+00:00",
        updated_at="2024-03-05T09:30:00+00:00",
    )


class TestValidateTitle:
    def test_ok(self) -> None:
        assert validate_title("Groceries") is None

    def test_required(self) -> None:
        assert validate_title("") == "Title is required."
        assert validate_title("   ") == "Title is required."
        assert validate_title(None) == "Title is required."

    def test_max_length(self) -> None:
        assert validate_title("x" * TITLE_MAX_LENGTH) is None
        assert validate_title("x" * (TITLE_MAX_LENGTH + 1)) == (
            "Title must be at most 120 characters."
        )

    def test_length_ignores_surrounding_space(self) -> None:
        assert validate_title("  " + "x" * TITLE_MAX_LENGTH + "  ") is None


class TestTags:
    def test_parse(self) -> None:
        assert parse_tags("work, ideas ,  , work,Ideas") == ["work", "ideas", "Ideas"]

    def test_parse_empty(self) -> None:
        assert parse_tags("") == []
        assert parse_tags(None) == []

    def test_format(self) -> None:
        assert format_tags(["a", "b"]) == "a, b"
        assert format_tags([]) == ""


class TestSnippet:
    def test_short_text_unchanged(self) -> None:
        assert snippet("  hello  ") == "hello"

    def test_long_text_truncated(self) -> None:
        text = "y" * 100
        assert snippet(text) == "y" * 80 + "…"

    def test_empty(self) -> None:
        assert snippet(None) == ""


class TestHeaderTitle:
    def test_create_mode(self) -> None:
        assert header_title(None, create_mode=True) == "New Note"

    def test_edit_mode(self) -> None:
        assert header_title(_note(), create_mode=False) == "Edit: Groceries"

    def test_missing_note(self) -> None:
        assert header_title(None, create_mode=False) == "Note not found"


class TestFormatTimestamp:
    def test_iso(self) -> None:
        assert format_timestamp("2024-03-05T09:30:00+00:00") == "Mar 05, 2024 09:30"

    def test_unparseable_passthrough(self) -> None:
        assert format_timestamp("soon") == "soon"
