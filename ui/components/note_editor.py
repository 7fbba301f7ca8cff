"""Note editor: create mode for a new note, edit mode for an existing one."""

from __future__ import annotations

import streamlit as st

from notes.models import NoteUpdate
from notes.repository import NoteNotFoundError, NoteRepository
from ui import forms
from ui.components.notes_list import NEW_NOTE, open_note


def _flash(kind: str, message: str) -> None:
    """Queue a message to show after the next rerun."""
    st.session_state.flash = (kind, message)


def _render_flash() -> None:
    flash = st.session_state.pop("flash", None)
    if flash is None:
        return
    kind, message = flash
    if kind == "error":
        st.error(message)
    else:
        st.success(message)


def _save(
    repository: NoteRepository,
    note_id: str,
    title: str,
    content: str,
    tags_raw: str,
) -> None:
    error = forms.validate_title(title)
    if error:
        st.error(error)
        st.error("Please fix validation errors before saving.")
        return

    title = title.strip()
    content = (content or "").strip()
    tags = forms.parse_tags(tags_raw)

    if note_id == NEW_NOTE:
        created = repository.create_note(title=title, content=content, tags=tags)
        open_note(created.id)
        _flash("success", "Note created successfully.")
        st.rerun()

    try:
        repository.update_note(
            NoteUpdate(id=note_id, title=title, content=content, tags=tags)
        )
    except NoteNotFoundError:
        st.error("Note not found. It may have been deleted.")
        return
    _flash("success", "Note updated.")
    st.rerun()


def _render_delete(repository: NoteRepository, note_id: str, title: str) -> None:
    if st.session_state.get("confirm_delete") != note_id:
        if st.button("🗑️ Delete", key="delete_note"):
            st.session_state.confirm_delete = note_id
            st.rerun()
        return

    st.warning(f'Delete note "{title.strip() or "Untitled"}"? This action cannot be undone.')
    col_yes, col_no = st.columns(2)
    with col_yes:
        if st.button("Delete", type="primary", key="confirm_delete_yes"):
            repository.delete_note(note_id)
            open_note(None)
            _flash("success", "Note deleted.")
            st.rerun()
    with col_no:
        if st.button("Keep", key="confirm_delete_no"):
            st.session_state.pop("confirm_delete", None)
            st.rerun()


def render(repository: NoteRepository) -> None:
    """Render the editor for ``st.session_state.active_note_id``."""
    _render_flash()

    note_id = st.session_state.get("active_note_id")
    if note_id is None:
        st.info("Select a note from the list or create a new one.")
        return

    create_mode = note_id == NEW_NOTE
    note = None if create_mode else repository.get_note(note_id)
    st.header(forms.header_title(note, create_mode))

    if not create_mode and note is None:
        st.error("The requested note could not be found.")
        return

    if note is not None:
        st.caption(
            f"Created {forms.format_timestamp(note.created_at)} · "
            f"Updated {forms.format_timestamp(note.updated_at)}"
        )

    with st.form(key=f"editor_{note_id}"):
        title = st.text_input(
            "Title",
            value=note.title if note else "",
            max_chars=forms.TITLE_MAX_LENGTH,
        )
        content = st.text_area("Content", value=note.content if note else "", height=300)
        tags_raw = st.text_input(
            "Tags",
            value=forms.format_tags(note.tags) if note else "",
            help="Comma-separated, e.g. work, ideas",
        )
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        _save(repository, note_id, title, content, tags_raw)

    col_cancel, col_delete = st.columns(2)
    with col_cancel:
        if st.button("Cancel", key="cancel_edit"):
            open_note(None)
            st.rerun()
    if note is not None:
        with col_delete:
            _render_delete(repository, note.id, note.title)
