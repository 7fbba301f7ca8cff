"""Populate the configured note store with sample notes for screenshots.

Goes through the repository, so the notes land wherever NOTES_STORAGE_BACKEND
points (a JSON file by default). The two welcome notes are installed
automatically the first time the store is opened.

Usage:
    python scripts/seed_data.py [--backend file] [--path data/notes_store.json] [--reset]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from notes.config import Settings  # noqa: E402
from notes.repository import build_repository  # noqa: E402
from notes.storage import StorageAdapter, build_backend  # noqa: E402

# Each entry: (title, content, tags)
SAMPLE_NOTES: list[tuple[str, str, list[str]]] = [
    (
        "Project Ideas",
        "Build a code review assistant that runs static analysis on every "
        "pull request and posts a summary comment.",
        ["ideas", "dev"],
    ),
    (
        "Meeting Notes",
        "Discussed migrating the monolith to services. Key decision: "
        "event-driven architecture with a message broker between services.",
        ["meetings", "architecture"],
    ),
    (
        "Reading List",
        "Attention Is All You Need; ReAct: Synergizing Reasoning and Acting; "
        "Toolformer.",
        ["reading", "papers"],
    ),
    (
        "Groceries",
        "Eggs, milk, bread, coffee beans.",
        ["personal"],
    ),
    (
        "Trip checklist",
        "Passport, chargers, travel adapter, book the airport taxi.",
        ["personal", "travel"],
    ),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the note store")
    parser.add_argument(
        "--backend",
        choices=["memory", "file", "redis", "sql"],
        help="Storage backend (defaults to NOTES_STORAGE_BACKEND)",
    )
    parser.add_argument("--path", type=Path, help="JSON file for the file backend")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop existing notes before seeding",
    )
    args = parser.parse_args()

    overrides = {}
    if args.backend:
        overrides["storage_backend"] = args.backend
    if args.path:
        overrides["storage_path"] = args.path
    settings = Settings(**overrides)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    if args.reset:
        StorageAdapter(build_backend(settings)).remove(settings.storage_key)
        print(f"Cleared {settings.storage_key}")

    repository = build_repository(settings)
    existing = {n.title for n in repository.list_notes()}

    created = 0
    for title, content, tags in SAMPLE_NOTES:
        if title in existing:
            print(f"  skip  {title} (already present)")
            continue
        note = repository.create_note(title=title, content=content, tags=tags)
        print(f"  added {note.title} [{note.id}]")
        created += 1

    print(f"\nDone: {created} created, {repository.count} notes in total.")


if __name__ == "__main__":
    main()
