"""Notes list: search box, new-note button and one entry per note."""

from __future__ import annotations

import streamlit as st

from notes.repository import NoteRepository
from ui import forms

NEW_NOTE = "new"


def open_note(note_id: str | None) -> None:
    """Select a note (or ``NEW_NOTE``) for the editor."""
    st.session_state.active_note_id = note_id
    st.session_state.pop("confirm_delete", None)


def render(repository: NoteRepository) -> None:
    """Render the list in the current container."""
    st.subheader("📝 Notes")

    if st.button("➕ New note", use_container_width=True, key="new_note"):
        open_note(NEW_NOTE)
        st.rerun()

    query = st.text_input(
        "Search notes",
        key="notes_query",
        placeholder="Search title, content or tags",
    )
    notes = repository.list_notes(query)

    if not notes:
        st.caption("No notes match your search." if query.strip() else "No notes yet.")
        return

    st.caption(f"{len(notes)} note{'s' if len(notes) != 1 else ''}")
    active_id = st.session_state.get("active_note_id")
    for note in notes:
        if st.button(
            note.title,
            key=f"note_{note.id}",
            type="primary" if note.id == active_id else "secondary",
            use_container_width=True,
        ):
            open_note(note.id)
            st.rerun()

        details = [forms.format_timestamp(note.updated_at)]
        if note.tags:
            details.append(forms.format_tags(note.tags))
        st.caption(" · ".join(details))
        text = forms.snippet(note.content)
        if text:
            st.text(text)
