"""
Contributors page: add and remove the people who record sentences.

Names are machine-safe ids (lowercase letters, numbers, underscore) used in
storage keys; the display name is what readers see.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys
from pathlib import Path as _Path

_r = str(_Path(__file__).resolve().parents[3])
_r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from src.core.utils import is_valid_contributor_name  # noqa: E402
from src.ui.api_client import APIError, get_api_client  # noqa: E402

client = get_api_client(st.session_state.get("api_base_url", "http://localhost:8000"))

st.header("Contributors")

# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------
with st.form("add_contributor", clear_on_submit=True):
    st.subheader("Add contributor")
    name = st.text_input("Name (id)", placeholder="e.g. kim_minji")
    display_name = st.text_input("Display name", placeholder="e.g. Kim Minji")
    submitted = st.form_submit_button("Add", type="primary")

if submitted:
    name = name.strip()
    display_name = display_name.strip()
    if not name or not display_name:
        st.error("Both name and display name are required.")
    elif not is_valid_contributor_name(name):
        st.error("Name may only contain lowercase letters, numbers, and underscore.")
    else:
        try:
            client.create_contributor(name, display_name)
            st.success(f"Added {display_name} ({name}).")
        except APIError as exc:
            st.error(exc.message)

# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------
st.subheader("Registered contributors")
try:
    contributors = client.list_contributors()
except APIError as exc:
    st.error(exc.message)
    st.stop()

if not contributors:
    st.info("No contributors yet.")

for contributor in contributors:
    col_name, col_display, col_action = st.columns([2, 3, 1])
    col_name.code(contributor["name"], language=None)
    col_display.write(contributor["display_name"])
    if col_action.button("Delete", key=f'delete_{contributor["name"]}'):
        try:
            client.delete_contributor(contributor["name"])
            st.toast(f'Deleted {contributor["name"]}; their recordings are kept.')
        except APIError as exc:
            st.error(exc.message)
        st.rerun()
