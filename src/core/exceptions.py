"""
VoiceCorpus exception hierarchy.

All application-specific exceptions inherit from VoiceCorpusError,
enabling centralized error handling in the API middleware layer and
uniform notice generation in the recording session controller.
"""

from datetime import UTC, datetime


class VoiceCorpusError(Exception):
    """Base exception for all VoiceCorpus errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICECORPUS_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Caller / input errors
# ---------------------------------------------------------------------------


class InvalidContributorError(VoiceCorpusError):
    """Raised when a contributor id is not in the contributor catalog."""

    def __init__(self, contributor_id: str) -> None:
        super().__init__(
            detail=f"Unknown contributor: {contributor_id}",
            code="INVALID_CONTRIBUTOR",
            status_code=404,
        )


class InvalidContributorNameError(VoiceCorpusError):
    """Raised when a new contributor name is not a machine-safe token."""

    def __init__(self, name: str) -> None:
        super().__init__(
            detail=(
                f"Invalid contributor name {name!r}: only lowercase letters, "
                "numbers, and underscore allowed"
            ),
            code="INVALID_CONTRIBUTOR_NAME",
            status_code=422,
        )


class ContributorAlreadyExistsError(VoiceCorpusError):
    """Raised when creating a contributor whose name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(
            detail=f"Contributor already exists: {name}",
            code="CONTRIBUTOR_EXISTS",
            status_code=409,
        )


class OutOfRangeError(VoiceCorpusError):
    """Raised when a 1-based sentence ordinal falls outside the catalog."""

    def __init__(self, ordinal: int, total: int) -> None:
        super().__init__(
            detail=f"Sentence {ordinal} is out of range (1-{total})",
            code="OUT_OF_RANGE",
            status_code=422,
        )


class IllegalTransitionError(VoiceCorpusError):
    """Raised when an operation is not allowed in the current capture state."""

    def __init__(self, action: str, state: str) -> None:
        self.action = action
        self.state = str(state)
        super().__init__(
            detail=f"Cannot {action} while session is {state}",
            code="ILLEGAL_TRANSITION",
            status_code=409,
        )


class SessionBusyError(VoiceCorpusError):
    """Raised when an operation arrives while another one is still in flight."""

    def __init__(self) -> None:
        super().__init__(
            detail="Another operation is in progress for this session",
            code="SESSION_BUSY",
            status_code=409,
        )


class SessionNotFoundError(VoiceCorpusError):
    """Raised when a recording session id does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            detail=f"Session not found: {session_id}",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


# ---------------------------------------------------------------------------
# Collaborator failures
# ---------------------------------------------------------------------------


class DeviceUnavailableError(VoiceCorpusError):
    """Raised when the audio input (or output) cannot be acquired."""

    def __init__(self, detail: str = "Audio device unavailable") -> None:
        super().__init__(detail=detail, code="DEVICE_UNAVAILABLE", status_code=503)


class StoreUnavailableError(VoiceCorpusError):
    """Raised when the catalog or recording store cannot be reached in time."""

    def __init__(self, step: str, detail: str = "") -> None:
        message = f"Store unavailable during {step}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="STORE_UNAVAILABLE", status_code=503)


class BlobWriteFailedError(VoiceCorpusError):
    """Raised when uploading an audio blob fails."""

    def __init__(self, key: str, detail: str = "") -> None:
        message = f"Uploading audio {key} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="BLOB_WRITE_FAILED", status_code=502)


class MetadataWriteFailedError(VoiceCorpusError):
    """Raised when writing the metadata row fails.

    ``orphaned_blob`` is set by the session controller when the blob for
    the same key had already been written; that blob is left in place.
    """

    def __init__(self, key: str, detail: str = "", orphaned_blob: bool = False) -> None:
        message = f"Saving metadata for {key} failed"
        if detail:
            message = f"{message}: {detail}"
        if orphaned_blob:
            message = f"{message} (audio was uploaded and is now orphaned)"
        self.key = key
        self.reason = detail
        self.orphaned_blob = orphaned_blob
        super().__init__(detail=message, code="METADATA_WRITE_FAILED", status_code=502)


class DeleteFailedError(VoiceCorpusError):
    """Raised when deleting a blob or metadata row fails."""

    def __init__(self, key: str, detail: str = "") -> None:
        message = f"Deleting {key} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="DELETE_FAILED", status_code=502)


class RecordingNotFoundError(VoiceCorpusError):
    """Raised when the store has no blob or row for a recording key."""

    def __init__(self, key: str) -> None:
        super().__init__(
            detail=f"Recording not found in store: {key}",
            code="NOT_FOUND",
            status_code=404,
        )


class TrainingError(VoiceCorpusError):
    """Raised when the external training job cannot be started."""

    def __init__(self, detail: str = "Training failed") -> None:
        super().__init__(detail=detail, code="TRAINING_ERROR", status_code=502)


class ExportError(VoiceCorpusError):
    """Raised when building the dataset archive fails."""

    def __init__(self, detail: str = "Export failed", status_code: int = 500) -> None:
        super().__init__(detail=detail, code="EXPORT_ERROR", status_code=status_code)
