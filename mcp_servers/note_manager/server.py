"""
Note Manager MCP Server

Exposes the local notes repository as Model Context Protocol tools:
list/search, get, create, update and delete. Runs with SSE transport on
the configured host and port (8001 by default).
"""

import logging
from datetime import UTC, datetime

from mcp.server.fastmcp import FastMCP

from notes.config import Settings
from notes.models import NoteUpdate
from notes.repository import NoteNotFoundError, NoteRepository, build_repository

settings = Settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("note_manager")

# ---------------------------------------------------------------------------
# MCP server + repository
# ---------------------------------------------------------------------------
mcp = FastMCP("note-manager", host=settings.mcp_host, port=settings.mcp_port)
_repository: NoteRepository | None = None


def get_repository() -> NoteRepository:
    """Build the repository on first use so importing never touches storage."""
    global _repository
    if _repository is None:
        _repository = build_repository(settings)
    return _repository


def _not_found(note_id: str) -> dict:
    return {"error": "Note not found", "note_id": note_id}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@mcp.tool()
def list_notes(query: str | None = None) -> dict:
    """List notes, most recently updated first.

    Use this tool to browse notes or to find notes about a topic. When a
    query is given, only notes whose title, content or any tag contains it
    (case-insensitive) are returned.

    Args:
        query: Optional search text.

    Returns:
        Dictionary with the matching notes and their count.
    """
    notes = get_repository().list_notes(query)
    logger.info("Tool list_notes invoked — query=%r, found=%d", query, len(notes))
    return {
        "count": len(notes),
        "notes": [n.to_record() for n in notes],
    }


@mcp.tool()
def get_note(note_id: str) -> dict:
    """Fetch a single note by its id.

    Args:
        note_id: The id returned when the note was created.

    Returns:
        The note, or an error entry if no note has that id.
    """
    note = get_repository().get_note(note_id)
    logger.info("Tool get_note invoked — id=%s, found=%s", note_id, note is not None)
    if note is None:
        return _not_found(note_id)
    return {"note": note.to_record()}


@mcp.tool()
def create_note(title: str, content: str = "", tags: list[str] | None = None) -> dict:
    """Create a new note with a title, optional content and optional tags.

    Use this tool when the user wants to write down or remember something.

    Args:
        title: Short descriptive title for the note.
        content: The body of the note.
        tags: Optional list of tags for categorisation.

    Returns:
        Dictionary with the created note and a confirmation message.
    """
    note = get_repository().create_note(title=title, content=content, tags=tags or [])
    logger.info("Tool create_note invoked — id=%s", note.id)
    return {
        "note_id": note.id,
        "note": note.to_record(),
        "message": f"Note '{note.title}' created successfully.",
    }


@mcp.tool()
def update_note(
    note_id: str,
    title: str | None = None,
    content: str | None = None,
    tags: list[str] | None = None,
) -> dict:
    """Change the title, content or tags of an existing note.

    Fields left out keep their current value.

    Args:
        note_id: Id of the note to change.
        title: New title.
        content: New content.
        tags: New list of tags, replacing the old one.

    Returns:
        The updated note, or an error entry if no note has that id.
    """
    fields = {"title": title, "content": content, "tags": tags}
    patch = NoteUpdate(id=note_id, **{k: v for k, v in fields.items() if v is not None})
    try:
        note = get_repository().update_note(patch)
    except NoteNotFoundError:
        logger.info("Tool update_note invoked — id=%s not found", note_id)
        return _not_found(note_id)
    logger.info("Tool update_note invoked — id=%s", note.id)
    return {
        "note": note.to_record(),
        "message": f"Note '{note.title}' updated.",
    }


@mcp.tool()
def delete_note(note_id: str) -> dict:
    """Delete a note. Deleting an unknown id is not an error.

    Args:
        note_id: Id of the note to delete.

    Returns:
        Dictionary saying whether a note was removed.
    """
    repository = get_repository()
    before = repository.count
    repository.delete_note(note_id)
    deleted = repository.count < before
    logger.info("Tool delete_note invoked — id=%s, deleted=%s", note_id, deleted)
    return {"note_id": note_id, "deleted": deleted}


@mcp.tool()
def health_check() -> dict:
    """Check whether the Note Manager server is healthy.

    Returns:
        Dictionary with server status, note count, storage state and timestamp.
    """
    logger.info("Tool health_check invoked")
    return {
        "status": "healthy",
        "server": "note-manager",
        "total_notes": get_repository().count,
        "storage_backend": settings.storage_backend,
        "timestamp": datetime.now(UTC).isoformat(),
    }


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logger.info("Starting Note Manager MCP server on port %d ...", settings.mcp_port)
    mcp.run(transport="sse")
