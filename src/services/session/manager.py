"""
In-process registry of recording sessions.

Each browser tab gets its own :class:`RecordingSessionController` keyed by
a generated session id.  The registry lives in the API process; sessions
do not survive a restart.
"""

import logging
import uuid
from collections.abc import Callable

from src.core.config import get_settings
from src.core.exceptions import SessionNotFoundError
from src.services.audio.recorder import BufferedAudioInput
from src.services.session.catalog import BaseContentCatalog, ContentCatalog
from src.services.session.controller import RecordingSessionController
from src.services.session.store import BaseRecordingStore, RecordingStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Creates, looks up, and closes recording sessions.

    Args:
        catalog_factory: Returns the content catalog for new sessions.
        store_factory: Returns the recording store for new sessions.
    """

    def __init__(
        self,
        catalog_factory: Callable[[], BaseContentCatalog] = ContentCatalog,
        store_factory: Callable[[], BaseRecordingStore] = RecordingStore,
    ) -> None:
        self._catalog_factory = catalog_factory
        self._store_factory = store_factory
        self._sessions: dict[str, RecordingSessionController] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def build_controller(self, session_id: str) -> RecordingSessionController:
        """Build an uninitialised controller configured from settings."""
        settings = get_settings()
        return RecordingSessionController(
            catalog=self._catalog_factory(),
            store=self._store_factory(),
            input_factory=lambda: BufferedAudioInput(max_bytes=settings.max_capture_bytes),
            store_timeout=settings.store_timeout_seconds,
            content_type=settings.audio_content_type,
            extension=settings.audio_extension,
            silence_threshold=settings.silence_threshold,
            session_id=session_id,
        )

    async def create_session(
        self, contributor_id: str | None = None
    ) -> tuple[str, RecordingSessionController]:
        """Create and initialise a session.

        Raises:
            InvalidContributorError: If *contributor_id* is unknown.
            StoreUnavailableError: If the catalog or store cannot be read.
        """
        session_id = uuid.uuid4().hex
        controller = self.build_controller(session_id)
        await controller.initialize(contributor_id)
        self._sessions[session_id] = controller
        logger.info("Created session %s (%d active)", session_id, len(self._sessions))
        return session_id, controller

    def get_controller(self, session_id: str) -> RecordingSessionController:
        """Return the controller for *session_id* or raise :class:`SessionNotFoundError`."""
        controller = self._sessions.get(session_id)
        if controller is None:
            raise SessionNotFoundError(session_id)
        return controller

    def close_session(self, session_id: str) -> None:
        """Release the session's audio input and forget it."""
        controller = self._sessions.pop(session_id, None)
        if controller is None:
            raise SessionNotFoundError(session_id)
        controller.close()
        logger.info("Closed session %s", session_id)

    def cleanup(self) -> None:
        """Close every session (called on shutdown)."""
        for controller in self._sessions.values():
            controller.close()
        if self._sessions:
            logger.info("Closed %d session(s) on shutdown", len(self._sessions))
        self._sessions.clear()


_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Return the process-wide session manager, creating it on first call."""
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager


def reset_session_manager() -> None:
    """Drop the process-wide manager (test helper)."""
    global _manager
    if _manager is not None:
        _manager.cleanup()
    _manager = None
