"""Streamlit main view: import a book and feed it to a chat assistant."""

import streamlit as st

from epubspoon.config import load_config, setup_logging
from epubspoon.library import Library
from epubspoon.models.state import ErrorState, IdleState, LoadingState, ReadyState
from epubspoon.surfaces.surface import Surface

st.set_page_config(page_title="EpubSpoon", page_icon="📖", layout="wide")


@st.cache_resource
def get_library() -> Library:
    config = load_config()
    setup_logging(config.logging.level)
    library = Library(config)
    library.start_sync()
    return library


library = get_library()

if "surface" not in st.session_state:
    surface = Surface(library, kind="main")
    surface.activate()
    st.session_state.surface = surface
    st.session_state.last_upload = None

surface: Surface = st.session_state.surface
# Streamlit reruns the script on every interaction; re-read so writes from
# the overlay or another tab show up.
surface.resume()

# Sidebar
st.sidebar.title("Settings")
detail_mode = st.sidebar.toggle("Show full excerpts", value=library.get_detail_mode())
if detail_mode != library.get_detail_mode():
    library.set_detail_mode(detail_mode)

with st.sidebar.expander("Master instruction"):
    instruction = st.text_area("Sent once before the first excerpt", value=library.get_instruction(), height=240)
    if instruction != library.get_instruction():
        library.set_instruction(instruction)
    if st.button("Reset to default"):
        library.reset_instruction()
        st.rerun()
    st.code(library.get_instruction(), language=None)

if not library.sync_available:
    st.sidebar.caption("Sync paused; progress from other windows appears on refresh.")

st.title("EpubSpoon 📖")

epub_file = st.file_uploader("Import EPUB", type=["epub"])
if epub_file is not None and epub_file.file_id != st.session_state.last_upload:
    st.session_state.last_upload = epub_file.file_id
    with st.spinner("Reading book..."):
        surface.import_book(epub_file.getvalue())

state = surface.state

if isinstance(state, IdleState):
    st.info("Import an .epub file to start.")

elif isinstance(state, LoadingState):
    st.info("Loading...")

elif isinstance(state, ErrorState):
    st.error(state.message)

elif isinstance(state, ReadyState):
    st.header(state.title)
    st.progress((state.current_index + 1) / state.total, text=surface.progress_label)

    segments_tab, chapters_tab = st.tabs(["Excerpts", f"Chapters ({len(state.chapters or [])})"])

    with segments_tab:
        nav = st.columns(4)
        if nav[0].button("⬅ Previous", disabled=state.current_index == 0):
            surface.previous()
            st.rerun()
        if nav[1].button("Next ➡", disabled=surface.is_last):
            surface.next()
            st.rerun()
        if nav[2].button("Copy & advance", type="primary"):
            was_last = surface.is_last
            st.session_state.copied = surface.advance()
            if was_last:
                st.toast("This is the last excerpt.")
        if nav[3].button("Clear book"):
            surface.clear()
            st.rerun()

        copied = st.session_state.pop("copied", None)
        if copied:
            st.code(copied, language=None)

        with st.form("search", clear_on_submit=True):
            query = st.text_input("Jump to number or search text")
            submitted = st.form_submit_button("Go")
        if submitted and query:
            found = surface.search(query)
            if found is None:
                st.warning(f'Not found: "{query}"')
            else:
                st.caption(f"Excerpt {found + 1}")

        st.subheader(f"Excerpt {surface.progress_label}")
        current = surface.current_text() or ""
        st.write(current if library.get_detail_mode() else current[:400] + ("..." if len(current) > 400 else ""))

        with st.expander("Context so far"):
            st.code(surface.context_text() or "", language=None)

    with chapters_tab:
        if state.chapters is None:
            st.caption("Chapter list not available for this book; import it again to rebuild.")
        else:
            for i, chapter in enumerate(state.chapters):
                with st.expander(f"Chapter {i + 1}: {chapter[:60]}"):
                    st.code(surface.chapter_text(i) or "", language=None)
