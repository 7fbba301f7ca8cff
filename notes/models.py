"""Pydantic models for notes and the payloads that create or change them."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def to_iso(moment: datetime) -> str:
    """Render a datetime as an ISO-8601 string."""
    return moment.isoformat()


def parse_timestamp(value: str | None) -> float:
    """Return the POSIX timestamp of an ISO-8601 string.

    Accepts a trailing ``Z``. Naive values are read as UTC. Missing or
    unparseable values map to ``0.0`` so they sort as the oldest.
    """
    if not value:
        return 0.0
    try:
        moment = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return 0.0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.timestamp()


class Note(BaseModel):
    """A single note with metadata.

    Persisted with camelCase timestamp keys (``createdAt``/``updatedAt``);
    both spellings are accepted on input.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, description="Note title")
    content: str = Field("", description="Note content")
    tags: list[str] = Field(default_factory=list, description="List of tags")
    created_at: str = Field(
        ..., alias="createdAt", description="ISO-8601 creation timestamp"
    )
    updated_at: str = Field(
        ..., alias="updatedAt", description="ISO-8601 last update timestamp"
    )

    @property
    def sort_key(self) -> float:
        """Recency used for ordering: updated_at, falling back to created_at."""
        return parse_timestamp(self.updated_at or self.created_at)

    def to_record(self) -> dict:
        """Serialise to the persisted layout."""
        return self.model_dump(by_alias=True)


class NoteCreate(BaseModel):
    """Fields accepted when creating a note."""

    title: str = Field(..., min_length=1)
    content: str = ""
    tags: list[str] = Field(default_factory=list)


class NoteUpdate(BaseModel):
    """Partial update for an existing note; unset fields keep their value."""

    id: str = Field(..., min_length=1)
    title: str | None = Field(None, min_length=1)
    content: str | None = None
    tags: list[str] | None = None
