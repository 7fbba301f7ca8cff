"""In-memory note collection mirrored to a key-value store.

The repository is the single source of truth for a session. Every
mutation rewrites the whole collection under one storage key; reads never
touch the store after construction.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import uuid4

from pydantic import ValidationError

from notes.config import Settings
from notes.metrics import NOTE_OPERATIONS, NOTES_TOTAL
from notes.models import (
    Note,
    NoteCreate,
    NoteUpdate,
    parse_timestamp,
    to_iso,
    utc_now,
)
from notes.storage import StorageAdapter, build_backend

logger = logging.getLogger(__name__)

NOTES_KEY = "notes.v1"

_REQUIRED_FIELDS = ("id", "title", "createdAt", "updatedAt")

# (title, content, tags, age)
SEED_NOTES: list[tuple[str, str, list[str], timedelta]] = [
    (
        "Welcome to Notes",
        "This is your first note. Use the app to create, edit, search, and "
        "delete notes. Your notes are stored locally on this machine.",
        ["welcome", "getting-started"],
        timedelta(hours=1),
    ),
    (
        "Tips",
        "Use the search to quickly find notes by title, content, or tags. "
        "Notes are sorted by most recently updated.",
        ["tips", "productivity"],
        timedelta(minutes=10),
    ),
]


class NoteNotFoundError(LookupError):
    """Raised when updating a note id that is not in the collection."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


def sort_by_recency(notes: Iterable[Note]) -> list[Note]:
    """Newest first by updated_at (falling back to created_at); stable."""
    return sorted(notes, key=lambda n: n.sort_key, reverse=True)


def _detached(note: Note) -> Note:
    """Copy handed to callers so they cannot reach the stored tag lists."""
    return note.model_copy(deep=True)


def sanitize_notes(items: Any) -> list[Note]:
    """Keep well-formed records from a decoded payload, coercing field types."""
    if not isinstance(items, list):
        return []

    notes: list[Note] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if not all(item.get(field) for field in _REQUIRED_FIELDS):
            continue
        content = item.get("content")
        tags = item.get("tags")
        try:
            note = Note(
                id=str(item["id"]),
                title=str(item["title"]),
                content=content if isinstance(content, str) else "",
                tags=[str(t) for t in tags] if isinstance(tags, list) else [],
                created_at=str(item["createdAt"]),
                updated_at=str(item["updatedAt"]),
            )
        except ValidationError as exc:
            logger.warning("Dropping malformed note %r: %s", item.get("id"), exc)
            continue
        notes.append(note)
    return notes


class NoteRepository:
    """CRUD, search and recency ordering over the note collection."""

    def __init__(
        self,
        storage: StorageAdapter,
        key: str = NOTES_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock
        self._notes: list[Note] = []
        self._load()

    def _load(self) -> None:
        """Restore from storage, or seed when nothing usable is stored."""
        stored = self._storage.read(self._key)
        notes = sanitize_notes(stored) if isinstance(stored, list) and stored else []
        if notes:
            self._notes = sort_by_recency(notes)
            logger.info("Loaded %d notes from storage key %s", len(notes), self._key)
        else:
            if stored is not None:
                logger.warning("No valid notes under %s, reseeding", self._key)
            self._notes = self._seed_notes()
            NOTE_OPERATIONS.labels(operation="seed").inc()
            self._persist()
            logger.info("Seeded %d notes", len(self._notes))
        NOTES_TOTAL.set(len(self._notes))

    def _seed_notes(self) -> list[Note]:
        now = self._clock()
        seeded = []
        for title, content, tags, age in SEED_NOTES:
            stamp = to_iso(now - age)
            seeded.append(
                Note(
                    id=self._generate_id(existing={n.id for n in seeded}),
                    title=title,
                    content=content,
                    tags=list(tags),
                    created_at=stamp,
                    updated_at=stamp,
                )
            )
        return sort_by_recency(seeded)

    def _persist(self) -> None:
        """Mirror the whole collection to storage."""
        self._storage.write(self._key, [n.to_record() for n in self._notes])

    def _generate_id(self, existing: Optional[set[str]] = None) -> str:
        """``<epoch ms>-<8 hex>``; retried on the off chance it collides."""
        taken = existing if existing is not None else {n.id for n in self._notes}
        while True:
            note_id = f"{int(time.time() * 1000)}-{uuid4().hex[:8]}"
            if note_id not in taken:
                return note_id

    def _index_of(self, note_id: str) -> int:
        for idx, note in enumerate(self._notes):
            if note.id == note_id:
                return idx
        return -1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_notes(self, query: Optional[str] = None) -> list[Note]:
        """Notes newest first, optionally filtered by a search query.

        The query is trimmed and case-folded, then matched as a plain
        substring against title, content and each tag.
        """
        notes = [_detached(n) for n in sort_by_recency(self._notes)]
        q = (query or "").strip().casefold()
        if not q:
            return notes
        return [
            n
            for n in notes
            if q in n.title.casefold()
            or q in n.content.casefold()
            or any(q in t.casefold() for t in n.tags)
        ]

    def get_note(self, note_id: str) -> Optional[Note]:
        """Return the note with ``note_id``, or None."""
        idx = self._index_of(note_id)
        return _detached(self._notes[idx]) if idx != -1 else None

    @property
    def count(self) -> int:
        """Number of stored notes."""
        return len(self._notes)

    def __len__(self) -> int:
        return len(self._notes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_note(
        self, payload: Optional[NoteCreate] = None, /, **fields: Any
    ) -> Note:
        """Create, store and return a new note.

        Takes a ``NoteCreate`` or the same fields as keyword arguments.
        """
        data = payload if payload is not None else NoteCreate(**fields)
        stamp = to_iso(self._clock())
        note = Note(
            id=self._generate_id(),
            title=data.title,
            content=data.content,
            tags=list(data.tags),
            created_at=stamp,
            updated_at=stamp,
        )
        self._notes.insert(0, note)
        self._notes = sort_by_recency(self._notes)
        self._persist()
        NOTE_OPERATIONS.labels(operation="create").inc()
        NOTES_TOTAL.set(len(self._notes))
        logger.info("Created note %s: '%s'", note.id, note.title)
        return _detached(note)

    def update_note(self, note: NoteUpdate | Note) -> Note:
        """Merge the given fields onto an existing note and stamp updated_at.

        ``id`` and ``created_at`` are never changed. Raises
        ``NoteNotFoundError`` if no note has this id.
        """
        idx = self._index_of(note.id)
        if idx == -1:
            raise NoteNotFoundError(note.id)

        if isinstance(note, Note):
            changes = {"title": note.title, "content": note.content, "tags": list(note.tags)}
        else:
            changes = note.model_dump(
                include={"title", "content", "tags"},
                exclude_unset=True,
                exclude_none=True,
            )
        if "tags" in changes:
            changes["tags"] = list(changes["tags"])

        current = self._notes[idx]
        stamp = to_iso(self._clock())
        # updated_at never moves backwards or before created_at, even if the
        # wall clock does
        floor = max(
            (current.created_at, current.updated_at), key=parse_timestamp
        )
        if parse_timestamp(stamp) < parse_timestamp(floor):
            stamp = floor
        changes["updated_at"] = stamp

        updated = current.model_copy(update=changes)
        self._notes[idx] = updated
        self._notes = sort_by_recency(self._notes)
        self._persist()
        NOTE_OPERATIONS.labels(operation="update").inc()
        logger.info("Updated note %s", updated.id)
        return _detached(updated)

    def delete_note(self, note_id: str) -> None:
        """Remove the note if present; persist only when something was removed."""
        before = len(self._notes)
        self._notes = [n for n in self._notes if n.id != note_id]
        if len(self._notes) == before:
            return
        self._persist()
        NOTE_OPERATIONS.labels(operation="delete").inc()
        NOTES_TOTAL.set(len(self._notes))
        logger.info("Deleted note %s", note_id)


def build_repository(settings: Settings) -> NoteRepository:
    """Wire storage and repository from settings."""
    storage = StorageAdapter(build_backend(settings))
    return NoteRepository(storage, key=settings.storage_key)
