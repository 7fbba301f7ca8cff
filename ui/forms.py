"""Form helpers shared by the list and editor pages.

Pure functions only, so they can be tested without a Streamlit runtime.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from notes.models import Note

TITLE_MAX_LENGTH = 120
SNIPPET_LENGTH = 80


def validate_title(title: str | None) -> Optional[str]:
    """Return an error message for an invalid title, or None if it is fine."""
    cleaned = (title or "").strip()
    if not cleaned:
        return "Title is required."
    if len(cleaned) > TITLE_MAX_LENGTH:
        return f"Title must be at most {TITLE_MAX_LENGTH} characters."
    return None


def parse_tags(raw: str | None) -> list[str]:
    """Split a comma-separated tag field, dropping blanks and repeats."""
    tags: list[str] = []
    for part in (raw or "").split(","):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def format_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags)


def snippet(content: str | None, length: int = SNIPPET_LENGTH) -> str:
    """First ``length`` characters of the content, with an ellipsis if cut."""
    text = (content or "").strip()
    if len(text) > length:
        return text[:length] + "…"
    return text


def header_title(note: Optional[Note], create_mode: bool) -> str:
    """Heading for the editor page."""
    if create_mode:
        return "New Note"
    if note is None:
        return "Note not found"
    return f"Edit: {note.title or '(Untitled)'}"


def format_timestamp(value: str) -> str:
    """Short, human-readable form of an ISO-8601 timestamp."""
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return moment.strftime("%b %d, %Y %H:%M")
