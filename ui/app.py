"""Local Notes — Streamlit interface.

Run with:
    streamlit run ui/app.py
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path so `ui.*` and `notes.*` imports
# resolve regardless of the working directory Streamlit uses.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

st.set_page_config(
    page_title="Notes",
    page_icon="📝",
    layout="wide",
    initial_sidebar_state="expanded",
)

from notes.config import Settings  # noqa: E402
from notes.repository import NoteRepository, build_repository  # noqa: E402
from ui.components import note_editor, notes_list  # noqa: E402


@st.cache_resource
def _repository() -> NoteRepository:
    """One repository per Streamlit server process."""
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    return build_repository(settings)


repository = _repository()

with st.sidebar:
    notes_list.render(repository)

note_editor.render(repository)
