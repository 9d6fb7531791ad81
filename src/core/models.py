"""
Pydantic v2 request / response models used across the API layer.

Session models mirror the recording session controller: its capture state,
the active sentence, the completed set, and the last user-visible notice.
Admin models cover contributors, progress, export, and training.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Recording session
# ---------------------------------------------------------------------------


class CaptureState(StrEnum):
    """States of the per-sentence recording workflow."""

    idle = "idle"
    capturing = "capturing"
    captured_unsaved = "captured_unsaved"
    saving = "saving"


class Direction(StrEnum):
    """Navigation direction for ``advance``."""

    next = "next"
    prev = "prev"


class NoticeLevel(StrEnum):
    """Severity of a notice shown to the reader."""

    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


class NoticeResponse(BaseModel):
    """Human-readable outcome of the last session operation."""

    level: NoticeLevel
    code: str
    message: str
    requires_confirmation: bool = False


class SentenceResponse(BaseModel):
    """A sentence from the catalog."""

    id: int
    text: str


class SessionCreate(BaseModel):
    """POST /sessions request body."""

    contributor: str | None = None


class SessionResponse(BaseModel):
    """Snapshot of a recording session after an operation."""

    session_id: str
    contributor: str | None = None
    capture_state: CaptureState
    sentence_index: int = 0
    ordinal: int = 0
    total_sentences: int = 0
    sentence: SentenceResponse | None = None
    completed: list[int] = Field(default_factory=list)
    is_recorded: bool = False
    progress_percent: float = 0.0
    elapsed_seconds: int = 0
    has_pending: bool = False
    pending_duration_seconds: float | None = None
    notice: NoticeResponse | None = None


class SelectContributorRequest(BaseModel):
    """POST /sessions/{id}/contributor request body."""

    contributor: str
    confirm_discard: bool = False


class SaveRequest(BaseModel):
    """POST /sessions/{id}/save request body."""

    confirm_replace: bool = False
    advance: bool = False


class DiscardRequest(BaseModel):
    """POST /sessions/{id}/discard request body."""

    confirm: bool = False


class AdvanceRequest(BaseModel):
    """POST /sessions/{id}/advance request body."""

    direction: Direction = Direction.next


class JumpRequest(BaseModel):
    """POST /sessions/{id}/jump request body (1-based ordinal)."""

    ordinal: int


class CommittedAudioResponse(BaseModel):
    """Location of the stored recording for the current sentence.

    ``url`` is ``None`` when the store has no audio; ``notice`` says why.
    """

    contributor: str
    sentence_id: int
    url: str | None = None
    notice: NoticeResponse | None = None


# ---------------------------------------------------------------------------
# Contributors
# ---------------------------------------------------------------------------


class ContributorCreate(BaseModel):
    """POST /contributors request body."""

    name: str = Field(min_length=1, max_length=64)
    display_name: str = Field(min_length=1, max_length=255)


class ContributorResponse(BaseModel):
    """Standard contributor representation returned by the API."""

    id: int
    name: str
    display_name: str
    created_at: datetime


# ---------------------------------------------------------------------------
# Recordings, progress, export
# ---------------------------------------------------------------------------


class RecordingResponse(BaseModel):
    """A stored recording metadata row."""

    id: int
    owner: str
    sentence_id: int
    filename: str
    sentence: str
    storage_url: str
    content_type: str
    created_at: datetime
    updated_at: datetime


class OwnerStat(BaseModel):
    """Number of recordings per owner (dashboard charts)."""

    owner: str
    count: int


class ProgressResponse(BaseModel):
    """Recording progress of one contributor across the sentence catalog."""

    contributor: str
    display_name: str
    recorded_count: int
    total_sentences: int
    percent: float


class ExportRequest(BaseModel):
    """POST /recordings/export request body; empty ``ids`` means everything."""

    ids: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Training
# ---------------------------------------------------------------------------


class TrainingRequest(BaseModel):
    """POST /train request body."""

    owner: str


class TrainingResponse(BaseModel):
    """Log lines returned by the external training job."""

    owner: str
    logs: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


class WebSocketMessageType(StrEnum):
    """Discriminator for messages sent over the capture WebSocket."""

    connected = "connected"
    status = "status"
    error = "error"


class WebSocketMessage(BaseModel):
    """JSON message sent from server to client over WebSocket."""

    type: WebSocketMessageType
    data: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
