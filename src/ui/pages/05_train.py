"""
Train page: start the external training job for one contributor.
"""

# Ensure project root is on sys.path (Streamlit page files need this).
import sys as _sys
from pathlib import Path as _Path

_r = str(_Path(__file__).resolve().parents[3])
_r in _sys.path or _sys.path.insert(0, _r)  # noqa: E702,I001

import time  # noqa: E402

import streamlit as st  # noqa: E402

from src.ui.api_client import APIError, get_api_client  # noqa: E402

client = get_api_client(st.session_state.get("api_base_url", "http://localhost:8000"))

st.header("Train a voice")

try:
    contributors = client.list_contributors()
except APIError as exc:
    st.error(exc.message)
    st.stop()

if not contributors:
    st.info("Add a contributor before training.")
    st.stop()

labels = {c["name"]: f'{c["display_name"]} ({c["name"]})' for c in contributors}
owner = st.selectbox("Contributor", list(labels), format_func=lambda n: labels[n])

if st.button("Start training", type="primary"):
    with st.spinner("Training job running..."):
        try:
            result = client.train(owner)
        except APIError as exc:
            st.error(exc.message)
            result = None
    if result is not None:
        st.session_state.train_logs = []
        log_box = st.empty()
        # Replay log lines so long jobs read like a live console
        for line in result["logs"]:
            st.session_state.train_logs.append(line)
            log_box.code("\n".join(st.session_state.train_logs), language=None)
            time.sleep(0.2)
        st.success("Training finished.")
elif st.session_state.get("train_logs"):
    st.code("\n".join(st.session_state.train_logs), language=None)
