"""
Recorder component: sentence prompt, capture, playback, save, navigation.

All workflow state lives in the backend session; this component only
renders the latest snapshot and forwards button presses.
"""

import asyncio
import hashlib
import io
import json
import logging

import numpy as np
import soundfile as sf
import streamlit as st

from src.ui.api_client import APIError, get_api_client

logger = logging.getLogger(__name__)

_NOTICE_RENDERERS = {
    "info": st.info,
    "success": st.success,
    "warning": st.warning,
    "error": st.error,
}


def _convert_to_pcm_16k_mono(audio_bytes: bytes) -> bytes:
    """Read uploaded WAV/audio bytes, resample to 16 kHz mono PCM int16."""
    data, sample_rate = sf.read(io.BytesIO(audio_bytes), dtype="float32")

    # Convert to mono if stereo
    if data.ndim > 1:
        data = data.mean(axis=1)

    # Resample to 16 kHz if needed
    if sample_rate != 16000:
        duration = len(data) / sample_rate
        num_samples = int(duration * 16000)
        indices = np.linspace(0, len(data) - 1, num_samples)
        data = np.interp(indices, np.arange(len(data)), data)

    # Convert to int16 PCM bytes
    pcm = (data * 32767).clip(-32768, 32767).astype(np.int16)
    return pcm.tobytes()


async def _stream_capture_ws(
    ws_url: str,
    pcm_bytes: bytes,
    chunk_size: int = 32000,  # 1 second of 16kHz 16-bit mono
) -> list[dict]:
    """Stream PCM audio into the session's capture WebSocket.

    Returns every JSON message the server sent; the last ``status``
    message carries the session snapshot after the capture stopped.
    """
    import websockets
    from websockets.exceptions import ConnectionClosed

    messages: list[dict] = []
    try:
        async with websockets.connect(ws_url) as ws:
            first = json.loads(await ws.recv())
            messages.append(first)
            if first.get("type") != "connected":
                return messages

            offset = 0
            while offset < len(pcm_bytes):
                await ws.send(pcm_bytes[offset : offset + chunk_size])
                messages.append(json.loads(await ws.recv()))
                offset += chunk_size

            await ws.send("stop")
            try:
                async for raw in ws:
                    messages.append(json.loads(raw))
            except ConnectionClosed:
                pass
    except (OSError, ConnectionClosed, json.JSONDecodeError) as exc:
        logger.warning("Capture WebSocket error: %s", exc)
        messages.append({"type": "error", "data": {"detail": str(exc)}})
    return messages


def _ws_url(session_id: str) -> str:
    api_url = st.session_state.api_base_url.rstrip("/")
    ws_scheme = "ws" if api_url.startswith("http://") else "wss"
    ws_host = api_url.replace("http://", "").replace("https://", "")
    return f"{ws_scheme}://{ws_host}/ws/sessions/{session_id}/capture"


def _ensure_session() -> dict | None:
    """Return the current snapshot, opening a session on first use."""
    client = get_api_client(st.session_state.api_base_url)
    snapshot = st.session_state.get("session")
    try:
        if snapshot is None:
            snapshot = client.create_session()
        else:
            snapshot = client.get_session(snapshot["session_id"])
    except APIError as exc:
        if exc.code == "SESSION_NOT_FOUND":
            # Backend restarted; open a fresh session
            st.session_state.session = None
            snapshot = client.create_session()
        else:
            st.error(exc.message)
            return None
    st.session_state.session = snapshot
    return snapshot


def _apply(call) -> None:  # noqa: ANN001
    """Run an API call returning a snapshot, store it, and rerun."""
    try:
        st.session_state.session = call()
    except APIError as exc:
        st.session_state.session_error = exc.message
    st.rerun()


def _render_notice(snapshot: dict) -> None:
    error = st.session_state.pop("session_error", None)
    if error:
        st.error(error)
    notice = snapshot.get("notice")
    if notice:
        _NOTICE_RENDERERS.get(notice["level"], st.info)(notice["message"])


def _render_contributor(snapshot: dict) -> None:
    client = get_api_client(st.session_state.api_base_url)
    sid = snapshot["session_id"]
    try:
        contributors = client.list_contributors()
    except APIError as exc:
        st.error(exc.message)
        return
    if not contributors:
        st.info("No contributors yet. Add one on the Contributors page.")
        return

    names = [c["name"] for c in contributors]
    labels = {c["name"]: f'{c["display_name"]} ({c["name"]})' for c in contributors}
    current = snapshot.get("contributor")
    index = names.index(current) if current in names else 0
    chosen = st.selectbox(
        "Contributor", names, index=index, format_func=lambda n: labels[n]
    )
    if chosen == current:
        st.session_state.requested_contributor = None
    elif chosen != st.session_state.get("requested_contributor"):
        st.session_state.requested_contributor = chosen
        _apply(lambda: client.select_contributor(sid, chosen))

    notice = snapshot.get("notice") or {}
    if notice.get("code") == "CONFIRM_DISCARD" and chosen != current:
        if st.button("Discard recording and switch", type="primary"):
            _apply(lambda: client.select_contributor(sid, chosen, confirm_discard=True))


def _render_sentence(snapshot: dict) -> None:
    total = snapshot["total_sentences"]
    if total == 0:
        st.info("The sentence catalog is empty. Load sentences with scripts/seed_sentences.py.")
        return
    done = len(snapshot["completed"])
    st.progress(min(snapshot["progress_percent"] / 100, 1.0))
    st.caption(f"{done} / {total} recorded ({snapshot['progress_percent']:.1f}%)")

    sentence = snapshot["sentence"]
    badge = " :green[recorded]" if snapshot["is_recorded"] else ""
    st.subheader(f"Sentence {snapshot['ordinal']} of {total}{badge}")
    st.markdown(f"### {sentence['text']}")


def _render_navigation(snapshot: dict) -> None:
    client = get_api_client(st.session_state.api_base_url)
    sid = snapshot["session_id"]
    total = snapshot["total_sentences"]
    if total == 0:
        return

    col_prev, col_next, col_jump, col_go = st.columns([1, 1, 2, 1])
    with col_prev:
        if st.button("Previous", use_container_width=True):
            _apply(lambda: client.advance(sid, "prev"))
    with col_next:
        if st.button("Next", use_container_width=True):
            _apply(lambda: client.advance(sid, "next"))
    with col_jump:
        ordinal = st.number_input(
            "Go to sentence",
            min_value=1,
            max_value=total,
            value=snapshot["ordinal"],
            label_visibility="collapsed",
        )
    with col_go:
        if st.button("Go", use_container_width=True):
            _apply(lambda: client.jump(sid, int(ordinal)))


def _render_capture(snapshot: dict) -> None:
    client = get_api_client(st.session_state.api_base_url)
    sid = snapshot["session_id"]
    if snapshot["total_sentences"] == 0 or not snapshot.get("contributor"):
        return

    if snapshot["has_pending"]:
        st.markdown(f"**Unsaved recording** ({snapshot['pending_duration_seconds'] or 0:.1f}s)")
        audio = client.pending_audio(sid)
        if audio:
            st.audio(audio, format="audio/wav")

        notice = snapshot.get("notice") or {}
        confirm_replace = notice.get("code") == "CONFIRM_REPLACE"
        col_save, col_next, col_discard = st.columns(3)
        with col_save:
            label = "Replace" if confirm_replace else "Save"
            if st.button(label, type="primary", use_container_width=True):
                _apply(lambda: client.save(sid, confirm_replace=confirm_replace))
        with col_next:
            label = "Replace & Next" if confirm_replace else "Save & Next"
            if st.button(label, use_container_width=True):
                _apply(lambda: client.save(sid, confirm_replace=confirm_replace, advance=True))
        # A pending contributor switch owns CONFIRM_DISCARD in the contributor section
        confirm_discard = (
            notice.get("code") == "CONFIRM_DISCARD"
            and not st.session_state.get("requested_contributor")
        )
        with col_discard:
            if confirm_discard:
                if st.button("Confirm discard", type="primary", use_container_width=True):
                    _apply(lambda: client.discard(sid, confirm=True))
            elif st.button("Discard", use_container_width=True):
                _apply(lambda: client.discard(sid))
        return

    if snapshot["is_recorded"] and st.button("Play saved recording"):
        try:
            committed = client.committed_audio(sid)
        except APIError as exc:
            st.error(exc.message)
        else:
            if committed.get("url"):
                st.audio(committed["url"])
            elif committed.get("notice"):
                st.warning(committed["notice"]["message"])

    # Key changes per sentence so the widget starts empty after each move
    key = f"audio_{sid}_{snapshot['ordinal']}_{st.session_state.capture_nonce}"
    audio = st.audio_input("Record this sentence", key=key)
    if audio is None:
        return

    audio_bytes = audio.getvalue()
    digest = hashlib.sha1(audio_bytes).hexdigest()
    if digest == st.session_state.get("last_capture_digest"):
        return
    st.session_state.last_capture_digest = digest

    with st.spinner("Uploading recording..."):
        try:
            pcm = _convert_to_pcm_16k_mono(audio_bytes)
        except (RuntimeError, ValueError) as exc:
            st.error(f"Could not read the recording: {exc}")
            return
        messages = asyncio.run(_stream_capture_ws(_ws_url(sid), pcm))

    errors = [m["data"].get("detail", "") for m in messages if m.get("type") == "error"]
    if errors:
        st.session_state.session_error = "; ".join(errors)
    st.session_state.capture_nonce += 1
    st.rerun()


def render_recorder() -> None:
    """Render the full recording workflow for the current session."""
    st.session_state.setdefault("capture_nonce", 0)
    snapshot = _ensure_session()
    if snapshot is None:
        return

    # "Go record" from the dashboard
    owner = st.session_state.pop("go_record_owner", None)
    if owner and owner != snapshot.get("contributor"):
        client = get_api_client(st.session_state.api_base_url)
        _apply(lambda: client.select_contributor(snapshot["session_id"], owner))

    _render_contributor(snapshot)
    _render_notice(snapshot)
    _render_sentence(snapshot)
    _render_capture(snapshot)
    st.divider()
    _render_navigation(snapshot)
