"""
Download page: select recordings and download them as a dataset zip.

The archive holds ``audio/{owner}/{filename}`` entries plus
``json/dataset.json`` with the metadata of every selected recording.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys
from pathlib import Path as _Path

_r = str(_Path(__file__).resolve().parents[3])
_r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import streamlit as st  # noqa: E402

from src.core.config import get_settings  # noqa: E402
from src.ui.api_client import APIError, get_api_client  # noqa: E402

client = get_api_client(st.session_state.get("api_base_url", "http://localhost:8000"))

st.header("Download recordings")

try:
    contributors = client.list_contributors()
except APIError as exc:
    st.error(exc.message)
    st.stop()

owner_options = ["(all)"] + [c["name"] for c in contributors]
owner = st.selectbox("Owner", owner_options)

try:
    recordings = client.list_recordings(owner=None if owner == "(all)" else owner)
except APIError as exc:
    st.error(exc.message)
    st.stop()

if not recordings:
    st.info("No recordings yet.")
    st.stop()

select_all = st.checkbox("Select all", value=False)
selected_ids: list[int] = []
for rec in recordings:
    label = f'{rec["owner"]}/{rec["filename"]}: {rec["sentence"][:80]}'
    if st.checkbox(label, value=select_all, key=f'rec_{rec["id"]}'):
        selected_ids.append(rec["id"])

st.session_state.download_selected_ids = selected_ids
st.caption(f"{len(selected_ids)} of {len(recordings)} selected")

col_selected, col_all = st.columns(2)
with col_selected:
    if st.button("Prepare selected", disabled=not selected_ids, use_container_width=True):
        with st.spinner("Building archive..."):
            try:
                st.session_state.download_archive = client.export_recordings(selected_ids)
            except APIError as exc:
                st.error(exc.message)
with col_all:
    if st.button("Prepare all", use_container_width=True):
        with st.spinner("Building archive..."):
            try:
                st.session_state.download_archive = client.export_recordings()
            except APIError as exc:
                st.error(exc.message)

archive = st.session_state.get("download_archive")
if archive:
    st.download_button(
        "Download zip",
        data=archive,
        file_name=get_settings().export_archive_name,
        mime="application/zip",
        type="primary",
    )
