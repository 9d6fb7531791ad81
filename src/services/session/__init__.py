"""
Session module - Recording session state machine and its collaborators.
"""

from src.services.session.catalog import (
    BaseContentCatalog,
    CatalogContributor,
    CatalogSentence,
    ContentCatalog,
)
from src.services.session.controller import Notice, Playback, RecordingSessionController
from src.services.session.manager import (
    SessionManager,
    get_session_manager,
    reset_session_manager,
)
from src.services.session.store import BaseRecordingStore, RecordingStore

__all__ = [
    "BaseContentCatalog",
    "BaseRecordingStore",
    "CatalogContributor",
    "CatalogSentence",
    "ContentCatalog",
    "Notice",
    "Playback",
    "RecordingSessionController",
    "RecordingStore",
    "SessionManager",
    "get_session_manager",
    "reset_session_manager",
]
