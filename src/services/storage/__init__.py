"""
Storage module - Database, blob, and recording-store operations.
"""

from src.services.storage.blob import BaseBlobStore, create_blob_store
from src.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from src.services.storage.models_db import Contributor, Recording, Sentence
from src.services.storage.repository import RecordingRepository

__all__ = [
    "Base",
    "BaseBlobStore",
    "Contributor",
    "Recording",
    "RecordingRepository",
    "Sentence",
    "close_db",
    "create_blob_store",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
