"""
Dashboard page: recording progress per contributor and per-owner charts.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys
from pathlib import Path as _Path

_r = str(_Path(__file__).resolve().parents[3])
_r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from src.ui.api_client import APIError, get_api_client  # noqa: E402
from src.ui.components.progress_table import render_progress_table  # noqa: E402

client = get_api_client(st.session_state.get("api_base_url", "http://localhost:8000"))

col_title, col_refresh = st.columns([6, 1])
with col_title:
    st.header("Dashboard")
with col_refresh:
    st.markdown("")  # vertical spacer
    if st.button("Refresh", key="dashboard_refresh"):
        st.rerun()

try:
    progress = client.progress()
    stats = client.recording_stats()
except APIError as exc:
    st.error(exc.message)
    st.stop()

total_recordings = sum(item["count"] for item in stats)
col_a, col_b, col_c = st.columns(3)
col_a.metric("Contributors", len(progress))
col_b.metric("Sentences", progress[0]["total_sentences"] if progress else 0)
col_c.metric("Recordings", total_recordings)

st.subheader("Progress by contributor")
render_progress_table(progress)

if stats:
    st.subheader("Files recorded by owner")
    st.bar_chart({item["owner"]: item["count"] for item in stats})

    st.subheader("Share of recordings by owner")
    for item in stats:
        share = item["count"] / total_recordings * 100 if total_recordings else 0.0
        st.progress(min(share / 100, 1.0), text=f'{item["owner"]}: {share:.1f}%')
