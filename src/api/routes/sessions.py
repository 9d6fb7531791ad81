"""
Recording session REST endpoints.

Every mutating endpoint drives one operation of the session's
``RecordingSessionController`` and answers with a full session snapshot,
including the notice the operation produced.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from src.core.models import (
    AdvanceRequest,
    CommittedAudioResponse,
    DiscardRequest,
    JumpRequest,
    NoticeResponse,
    SaveRequest,
    SelectContributorRequest,
    SentenceResponse,
    SessionCreate,
    SessionResponse,
)
from src.services.session.controller import Notice, RecordingSessionController
from src.services.session.manager import get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _notice_response(notice: Notice | None) -> NoticeResponse | None:
    if notice is None:
        return None
    return NoticeResponse(
        level=notice.level,
        code=notice.code,
        message=notice.message,
        requires_confirmation=notice.requires_confirmation,
    )


def to_session_response(session_id: str, controller: RecordingSessionController) -> SessionResponse:
    """Build the API snapshot of a session."""
    sentence = controller.current_sentence
    return SessionResponse(
        session_id=session_id,
        contributor=controller.contributor,
        capture_state=controller.state,
        sentence_index=controller.sentence_index,
        ordinal=controller.sentence_index + 1 if sentence else 0,
        total_sentences=controller.total_sentences,
        sentence=SentenceResponse(id=sentence.id, text=sentence.text) if sentence else None,
        completed=sorted(controller.completed),
        is_recorded=controller.is_recorded,
        progress_percent=round(controller.progress_percent, 1),
        elapsed_seconds=controller.elapsed_seconds,
        has_pending=controller.has_pending,
        pending_duration_seconds=(
            round(controller.pending_duration_seconds, 2) if controller.has_pending else None
        ),
        notice=_notice_response(controller.notice),
    )


def _snapshot(session_id: str) -> SessionResponse:
    return to_session_response(session_id, get_session_manager().get_controller(session_id))


@router.post("", response_model=SessionResponse)
async def create_session(body: SessionCreate | None = None):
    """Open a recording session for the requested (or first) contributor."""
    contributor = body.contributor if body else None
    session_id, controller = await get_session_manager().create_session(contributor)
    return to_session_response(session_id, controller)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session_state(session_id: str):
    """Return the current session snapshot."""
    return _snapshot(session_id)


@router.delete("/{session_id}")
async def close_session(session_id: str):
    """Close the session and release its audio input."""
    get_session_manager().close_session(session_id)
    return {"session_id": session_id, "closed": True}


@router.post("/{session_id}/contributor", response_model=SessionResponse)
async def select_contributor(session_id: str, body: SelectContributorRequest):
    """Switch the active contributor (keeps the sentence position)."""
    controller = get_session_manager().get_controller(session_id)
    await controller.select_contributor(body.contributor, confirm_discard=body.confirm_discard)
    return to_session_response(session_id, controller)


@router.post("/{session_id}/capture/start", response_model=SessionResponse)
async def start_capture(session_id: str):
    """Acquire the audio input and start capturing."""
    controller = get_session_manager().get_controller(session_id)
    await controller.start_capture()
    return to_session_response(session_id, controller)


@router.post("/{session_id}/capture/chunk", response_model=SessionResponse)
async def capture_chunk(session_id: str, request: Request):
    """Append the raw request body to the running capture."""
    controller = get_session_manager().get_controller(session_id)
    controller.feed_capture(await request.body())
    return to_session_response(session_id, controller)


@router.post("/{session_id}/capture/stop", response_model=SessionResponse)
async def stop_capture(session_id: str):
    """Stop capturing and keep the audio as the pending recording."""
    controller = get_session_manager().get_controller(session_id)
    await controller.stop_capture()
    return to_session_response(session_id, controller)


@router.post("/{session_id}/capture", response_model=SessionResponse)
async def upload_capture(session_id: str, request: Request):
    """Capture a complete recording uploaded in one request body.

    Runs start, buffer, and stop in sequence; if the capture cannot start
    the snapshot carries the reason.
    """
    controller = get_session_manager().get_controller(session_id)
    await controller.capture_once(await request.body())
    return to_session_response(session_id, controller)


@router.post("/{session_id}/discard", response_model=SessionResponse)
async def discard_pending(session_id: str, body: DiscardRequest | None = None):
    """Discard the unsaved recording (requires ``confirm``)."""
    controller = get_session_manager().get_controller(session_id)
    controller.discard_pending(confirm=body.confirm if body else False)
    return to_session_response(session_id, controller)


@router.post("/{session_id}/save", response_model=SessionResponse)
async def save_recording(session_id: str, body: SaveRequest | None = None):
    """Persist the pending recording for the current sentence."""
    body = body or SaveRequest()
    controller = get_session_manager().get_controller(session_id)
    await controller.save(confirm_replace=body.confirm_replace, advance=body.advance)
    return to_session_response(session_id, controller)


@router.post("/{session_id}/advance", response_model=SessionResponse)
async def advance(session_id: str, body: AdvanceRequest | None = None):
    """Move to the next or previous sentence."""
    body = body or AdvanceRequest()
    controller = get_session_manager().get_controller(session_id)
    controller.advance(body.direction)
    return to_session_response(session_id, controller)


@router.post("/{session_id}/jump", response_model=SessionResponse)
async def jump(session_id: str, body: JumpRequest):
    """Move to a 1-based sentence ordinal."""
    controller = get_session_manager().get_controller(session_id)
    controller.jump_to(body.ordinal)
    return to_session_response(session_id, controller)


@router.get("/{session_id}/pending/audio")
async def pending_audio(session_id: str):
    """Return the unsaved recording for local playback."""
    controller = get_session_manager().get_controller(session_id)
    playback = controller.play_pending()
    return Response(content=playback.data, media_type=playback.content_type)


@router.get("/{session_id}/committed", response_model=CommittedAudioResponse)
async def committed_audio(session_id: str):
    """Resolve the stored recording of the current sentence."""
    controller = get_session_manager().get_controller(session_id)
    playback = await controller.play_committed()
    sentence = controller.current_sentence
    return CommittedAudioResponse(
        contributor=controller.contributor or "",
        sentence_id=sentence.id if sentence else 0,
        url=playback.url if playback else None,
        notice=None if playback else _notice_response(controller.notice),
    )
