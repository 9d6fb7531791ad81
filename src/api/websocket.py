"""WebSocket endpoint for streaming a capture into a recording session.

Connecting starts a capture on the session.  The client then streams the
audio as binary frames (raw 16-bit PCM or a complete WAV file) and sends
the text frame ``stop`` when done; a disconnect also stops the capture so
nothing already streamed is lost.  The server answers with JSON
``WebSocketMessage`` objects carrying session snapshots.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.api.routes.sessions import to_session_response
from src.core.exceptions import VoiceCorpusError
from src.core.models import CaptureState, WebSocketMessage, WebSocketMessageType
from src.services.session.manager import get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter()

# Close code sent when the session cannot capture
_CLOSE_REJECTED = 4400


async def _send(websocket: WebSocket, msg_type: WebSocketMessageType, data: dict) -> None:
    msg = WebSocketMessage(type=msg_type, data=data)
    await websocket.send_json(msg.model_dump(mode="json"))


@router.websocket("/ws/sessions/{session_id}/capture")
async def capture_ws(websocket: WebSocket, session_id: str) -> None:
    """Stream one capture into *session_id*.

    Protocol:
        - Server sends ``connected`` with the session snapshot once capturing.
        - Client sends binary audio frames, then the text frame ``stop``.
        - Server sends ``status`` (elapsed and buffered seconds) after each frame and a
          final ``status`` snapshot after the capture stops.
        - Failures are sent as ``error`` messages with ``code`` and ``detail``.
    """
    await websocket.accept()

    try:
        controller = get_session_manager().get_controller(session_id)
        await controller.start_capture()
    except VoiceCorpusError as exc:
        await _send(websocket, WebSocketMessageType.error, {"code": exc.code, "detail": exc.detail})
        await websocket.close(code=_CLOSE_REJECTED)
        return

    if controller.state is not CaptureState.capturing:
        notice = controller.notice
        await _send(
            websocket,
            WebSocketMessageType.error,
            {
                "code": notice.code if notice else "CAPTURE_NOT_STARTED",
                "detail": notice.message if notice else "Capture could not start",
            },
        )
        await websocket.close(code=_CLOSE_REJECTED)
        return

    logger.info("Capture WebSocket connected for session %s", session_id)
    snapshot = to_session_response(session_id, controller)
    await _send(websocket, WebSocketMessageType.connected, snapshot.model_dump(mode="json"))

    connected = True
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                connected = False
                break
            if message.get("bytes") is not None:
                try:
                    failure = controller.feed_capture(message["bytes"])
                except VoiceCorpusError as exc:
                    await _send(
                        websocket, WebSocketMessageType.error, {"code": exc.code, "detail": exc.detail}
                    )
                    continue
                if failure is not None:
                    await _send(
                        websocket,
                        WebSocketMessageType.error,
                        {"code": failure.code, "detail": failure.message},
                    )
                    continue
                await _send(
                    websocket,
                    WebSocketMessageType.status,
                    {
                        "elapsed_seconds": controller.elapsed_seconds,
                        "buffered_seconds": round(controller.buffered_seconds, 3),
                    },
                )
            elif (message.get("text") or "").strip().lower() == "stop":
                break
    except WebSocketDisconnect:
        connected = False

    # Device end: stop whatever was streamed, even if the client went away
    if controller.state is CaptureState.capturing:
        try:
            await controller.stop_capture()
        except VoiceCorpusError as exc:
            logger.warning("Stopping capture for session %s failed: %s", session_id, exc.detail)

    logger.info("Capture WebSocket finished for session %s (%s)", session_id, controller.state)
    if connected:
        snapshot = to_session_response(session_id, controller)
        await _send(websocket, WebSocketMessageType.status, snapshot.model_dump(mode="json"))
        await websocket.close()
