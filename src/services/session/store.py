"""
Recording store: audio blobs paired with metadata rows.

Each recording is addressed by ``(contributor, sentence_id)`` and lives at
the blob key ``{contributor}/{sentence_id:04d}.{ext}``.  Blob and metadata
writes are separate calls with no transaction spanning both; callers are
responsible for sequencing them.
"""

import logging
from abc import ABC, abstractmethod

import httpx
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import get_settings
from src.core.exceptions import (
    BlobWriteFailedError,
    DeleteFailedError,
    MetadataWriteFailedError,
    RecordingNotFoundError,
    StoreUnavailableError,
)
from src.core.utils import recording_filename, recording_key
from src.services.storage.blob import BaseBlobStore, create_blob_store
from src.services.storage.database import get_session
from src.services.storage.repository import RecordingRepository

logger = logging.getLogger(__name__)

# Failures a blob provider may raise: filesystem errors, bad keys, HTTP errors
_BLOB_ERRORS = (OSError, ValueError, httpx.HTTPError)


class BaseRecordingStore(ABC):
    """Read/write contract consumed by recording sessions."""

    @abstractmethod
    async def list_completed(self, contributor_id: str) -> set[int]:
        """Return sentence ids with a live recording for *contributor_id*."""

    @abstractmethod
    async def put_blob(
        self, contributor_id: str, sentence_id: int, data: bytes, content_type: str
    ) -> str:
        """Write (or overwrite) the audio blob and return its public URL."""

    @abstractmethod
    async def delete_blob(self, contributor_id: str, sentence_id: int) -> None:
        """Delete the audio blob."""

    @abstractmethod
    async def get_blob_url(self, contributor_id: str, sentence_id: int) -> str:
        """Return the blob URL or raise :class:`RecordingNotFoundError`."""

    @abstractmethod
    async def put_metadata(
        self, contributor_id: str, sentence_id: int, sentence_text: str, blob_url: str
    ) -> None:
        """Upsert the metadata row keyed on ``(contributor_id, sentence_id)``."""

    @abstractmethod
    async def delete_metadata(self, contributor_id: str, sentence_id: int) -> None:
        """Delete the metadata row."""


class RecordingStore(BaseRecordingStore):
    """Recording store composed of a blob store and the ``recordings`` table.

    Every metadata call runs in its own transaction via ``get_session()``.

    Args:
        blob_store: Blob provider (defaults to ``create_blob_store()``).
        extension: Audio file extension used in blob keys.
        content_type: MIME type recorded for new blobs.
    """

    def __init__(
        self,
        blob_store: BaseBlobStore | None = None,
        extension: str | None = None,
        content_type: str | None = None,
    ) -> None:
        settings = get_settings()
        self._blobs = blob_store or create_blob_store()
        self._extension = extension or settings.audio_extension
        self._content_type = content_type or settings.audio_content_type

    @property
    def blob_store(self) -> BaseBlobStore:
        return self._blobs

    @property
    def content_type(self) -> str:
        return self._content_type

    def key_for(self, contributor_id: str, sentence_id: int) -> str:
        return recording_key(contributor_id, sentence_id, self._extension)

    async def list_completed(self, contributor_id: str) -> set[int]:
        try:
            async with get_session() as session:
                return await RecordingRepository(session).list_completed_sentence_ids(
                    contributor_id
                )
        except SQLAlchemyError as exc:
            logger.warning("Loading completed set for %s failed: %s", contributor_id, exc)
            raise StoreUnavailableError("list_completed", str(exc)) from exc

    async def put_blob(
        self, contributor_id: str, sentence_id: int, data: bytes, content_type: str
    ) -> str:
        key = self.key_for(contributor_id, sentence_id)
        try:
            await self._blobs.put(key, data, content_type)
        except _BLOB_ERRORS as exc:
            logger.warning("Blob write for %s failed: %s", key, exc)
            raise BlobWriteFailedError(key, str(exc)) from exc
        return self._blobs.public_url(key)

    async def delete_blob(self, contributor_id: str, sentence_id: int) -> None:
        key = self.key_for(contributor_id, sentence_id)
        try:
            await self._blobs.delete(key)
        except _BLOB_ERRORS as exc:
            logger.warning("Blob delete for %s failed: %s", key, exc)
            raise DeleteFailedError(key, str(exc)) from exc

    async def get_blob_url(self, contributor_id: str, sentence_id: int) -> str:
        key = self.key_for(contributor_id, sentence_id)
        try:
            found = await self._blobs.exists(key)
        except _BLOB_ERRORS as exc:
            raise StoreUnavailableError("get_blob_url", str(exc)) from exc
        if not found:
            raise RecordingNotFoundError(key)
        return self._blobs.public_url(key)

    async def put_metadata(
        self, contributor_id: str, sentence_id: int, sentence_text: str, blob_url: str
    ) -> None:
        key = self.key_for(contributor_id, sentence_id)
        try:
            async with get_session() as session:
                await RecordingRepository(session).upsert_recording(
                    owner=contributor_id,
                    sentence_id=sentence_id,
                    filename=recording_filename(sentence_id, self._extension),
                    sentence=sentence_text,
                    storage_url=blob_url,
                    content_type=self._content_type,
                )
        except SQLAlchemyError as exc:
            logger.warning("Metadata write for %s failed: %s", key, exc)
            raise MetadataWriteFailedError(key, str(exc)) from exc

    async def delete_metadata(self, contributor_id: str, sentence_id: int) -> None:
        key = self.key_for(contributor_id, sentence_id)
        try:
            async with get_session() as session:
                await RecordingRepository(session).delete_recording(contributor_id, sentence_id)
        except SQLAlchemyError as exc:
            logger.warning("Metadata delete for %s failed: %s", key, exc)
            raise DeleteFailedError(key, str(exc)) from exc
