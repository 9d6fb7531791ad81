"""
VoiceCorpus Streamlit UI: main entry point.

Run with: ``streamlit run src/ui/app.py``
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from src.ui.api_client import get_api_client  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="VoiceCorpus",
    page_icon="\U0001f399\ufe0f",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_base_url": "http://localhost:8000",
    "session": None,
    "capture_nonce": 0,
    "last_capture_digest": None,
    "requested_contributor": None,
    "download_selected_ids": [],
    "train_logs": [],
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f399\ufe0f VoiceCorpus")
    st.caption("Read a sentence, record it, build a voice dataset")
    st.divider()
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
        help="URL of the VoiceCorpus FastAPI backend server (default: http://localhost:8000)",
    )

    # Connection status indicator
    _client = get_api_client(st.session_state.get("api_base_url", "http://localhost:8000"))
    _conn_ok, _conn_msg = _client.check_connection()
    if _conn_ok:
        st.success(f"Backend: {_conn_msg}")
    else:
        st.error(f"Backend: {_conn_msg}")

# ---------------------------------------------------------------------------
# Navigation (multipage)
# ---------------------------------------------------------------------------
record_page = st.Page(
    "pages/01_record.py",
    title="Record",
    icon="\U0001f3a4",
    default=True,
)
contributors_page = st.Page(
    "pages/02_contributors.py",
    title="Contributors",
    icon="\U0001f465",
)
dashboard_page = st.Page(
    "pages/03_dashboard.py",
    title="Dashboard",
    icon="\U0001f4ca",
)
download_page = st.Page(
    "pages/04_download.py",
    title="Download",
    icon="\U0001f4e6",
)
train_page = st.Page(
    "pages/05_train.py",
    title="Train",
    icon="\U0001f9e0",
)


@st.dialog("Unsaved recording")
def _confirm_navigation() -> None:
    st.warning(
        "You have a recording that has not been saved. "
        "Leaving keeps it in the session, but it is lost if the session is closed."
    )
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Go to Record", type="primary", use_container_width=True):
            st.switch_page(record_page)
    with col2:
        if st.button("Continue", use_container_width=True):
            st.session_state.navigation_acknowledged = True
            st.rerun()


nav = st.navigation([record_page, contributors_page, dashboard_page, download_page, train_page])

_snapshot = st.session_state.session or {}
if (
    nav != record_page
    and _snapshot.get("has_pending")
    and not st.session_state.get("navigation_acknowledged")
):
    _confirm_navigation()
if nav == record_page:
    st.session_state.navigation_acknowledged = False
nav.run()
