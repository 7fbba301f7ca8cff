"""Tests for the Note Manager MCP server.

Unit tests call the tool functions directly against an in-memory
repository. Integration tests start the server as a subprocess and
exercise the tools through the MCP client SDK; they only run when
RUN_INTEGRATION=1.
"""

import json
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import anyio
import pytest
from mcp import ClientSession
from mcp.client.sse import sse_client

from mcp_servers.note_manager import server
from notes.repository import NoteRepository
from notes.storage import MemoryBackend, StorageAdapter

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_MODULE = "mcp_servers.note_manager.server"
SERVER_URL = "http://localhost:8001/sse"


# ===================================================================
# UNIT TESTS — tool functions
# ===================================================================


@pytest.fixture()
def repository(monkeypatch: pytest.MonkeyPatch) -> NoteRepository:
    """Swap the server's repository for a fresh in-memory one."""
    repo = NoteRepository(StorageAdapter(MemoryBackend()))
    monkeypatch.setattr(server, "_repository", repo)
    return repo


class TestListNotes:
    def test_lists_seed_notes(self, repository: NoteRepository) -> None:
        data = server.list_notes()
        assert data["count"] == 2
        assert [n["title"] for n in data["notes"]] == ["Tips", "Welcome to Notes"]

    def test_persisted_layout(self, repository: NoteRepository) -> None:
        note = server.list_notes()["notes"][0]
        assert set(note) == {"id", "title", "content", "tags", "createdAt", "updatedAt"}

    def test_query(self, repository: NoteRepository) -> None:
        data = server.list_notes(query="tip")
        assert data["count"] == 1
        assert data["notes"][0]["title"] == "Tips"

    def test_query_no_match(self, repository: NoteRepository) -> None:
        data = server.list_notes(query="zzzznotfound")
        assert data == {"count": 0, "notes": []}


class TestCreateAndGet:
    def test_create(self, repository: NoteRepository) -> None:
        data = server.create_note("Python tips", "Use list comprehensions", ["python"])
        assert "created successfully" in data["message"]
        assert data["note"]["tags"] == ["python"]
        assert repository.get_note(data["note_id"]) is not None

    def test_create_defaults(self, repository: NoteRepository) -> None:
        data = server.create_note("Bare")
        assert data["note"]["content"] == ""
        assert data["note"]["tags"] == []

    def test_get(self, repository: NoteRepository) -> None:
        note_id = server.create_note("Find me")["note_id"]
        data = server.get_note(note_id)
        assert data["note"]["title"] == "Find me"

    def test_get_missing(self, repository: NoteRepository) -> None:
        assert server.get_note("missing") == {
            "error": "Note not found",
            "note_id": "missing",
        }


class TestUpdate:
    def test_update_partial(self, repository: NoteRepository) -> None:
        note_id = server.create_note("Draft", "body", ["t"])["note_id"]
        data = server.update_note(note_id, title="Final")
        assert data["note"]["title"] == "Final"
        assert data["note"]["content"] == "body"
        assert data["note"]["tags"] == ["t"]

    def test_update_clears_content(self, repository: NoteRepository) -> None:
        note_id = server.create_note("Draft", "body")["note_id"]
        data = server.update_note(note_id, content="")
        assert data["note"]["content"] == ""

    def test_update_missing(self, repository: NoteRepository) -> None:
        before = repository.list_notes()
        data = server.update_note("missing", title="x")
        assert data["error"] == "Note not found"
        assert repository.list_notes() == before


class TestDelete:
    def test_delete(self, repository: NoteRepository) -> None:
        note_id = server.create_note("Temp")["note_id"]
        assert server.delete_note(note_id) == {"note_id": note_id, "deleted": True}
        assert repository.get_note(note_id) is None

    def test_delete_missing(self, repository: NoteRepository) -> None:
        assert server.delete_note("missing") == {"note_id": "missing", "deleted": False}
        assert repository.count == 2


class TestHealth:
    def test_health_check(self, repository: NoteRepository) -> None:
        data = server.health_check()
        assert data["status"] == "healthy"
        assert data["server"] == "note-manager"
        assert data["total_notes"] == 2
        assert "timestamp" in data


def test_repository_built_lazily(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(server, "_repository", None)
    monkeypatch.setattr(server.settings, "storage_backend", "file")
    monkeypatch.setattr(server.settings, "storage_path", tmp_path / "store.json")
    repo = server.get_repository()
    assert server.get_repository() is repo
    assert (tmp_path / "store.json").exists()


# ===================================================================
# INTEGRATION TESTS — MCP client ↔ server
# ===================================================================


def _parse_tool_response(result) -> dict:
    """Extract the JSON dict from a CallToolResult."""
    text = result.content[0].text
    return json.loads(text)


async def _call(tool: str, arguments: dict) -> dict:
    async with sse_client(SERVER_URL) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()
            r = await session.call_tool(tool, arguments)
            return _parse_tool_response(r)


@pytest.fixture(scope="module")
def note_server():
    """Start the Note Manager MCP server on an in-memory store, yield, then stop."""
    env = {**os.environ, "NOTES_STORAGE_BACKEND": "memory"}
    proc = subprocess.Popen(
        [sys.executable, "-m", SERVER_MODULE],
        cwd=str(PROJECT_ROOT),
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )

    # Wait for uvicorn to be ready
    time.sleep(3)
    assert proc.poll() is None, f"Server failed to start: {proc.stderr.read().decode()}"

    yield proc

    proc.send_signal(signal.SIGTERM)
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()


@pytest.mark.integration
@pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION") != "1", reason="set RUN_INTEGRATION=1 to run"
)
class TestMCPIntegration:
    """Integration tests that talk to the live MCP server."""

    def test_seeded(self, note_server) -> None:
        data = anyio.run(_call, "list_notes", {})
        assert data["count"] == 2

    def test_create_then_search(self, note_server) -> None:
        created = anyio.run(
            _call,
            "create_note",
            {"title": "MCP notes", "content": "FastMCP uses decorators", "tags": ["mcp"]},
        )
        assert "note_id" in created

        found = anyio.run(_call, "list_notes", {"query": "decorators"})
        assert [n["title"] for n in found["notes"]] == ["MCP notes"]

    def test_update_missing(self, note_server) -> None:
        data = anyio.run(_call, "update_note", {"note_id": "missing", "title": "x"})
        assert data["error"] == "Note not found"
