"""Tests for RecordingStore and ContentCatalog against real storage.

Uses the in-memory database (via ``use_test_db``) and a LocalBlobStore
rooted in ``tmp_path`` so blob keys, public URLs, and metadata rows are
exercised end to end without a network.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.exceptions import (
    BlobWriteFailedError,
    DeleteFailedError,
    MetadataWriteFailedError,
    RecordingNotFoundError,
    StoreUnavailableError,
)
from src.services.session.catalog import CatalogContributor, CatalogSentence, ContentCatalog
from src.services.session.store import RecordingStore
from src.services.storage.blob.local import LocalBlobStore
from src.services.storage.database import get_session
from src.services.storage.repository import RecordingRepository


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(root_dir=tmp_path, bucket="recordings", public_base_url="http://test")


@pytest.fixture
def recording_store(use_test_db, blob_store):
    return RecordingStore(blob_store=blob_store, extension="wav", content_type="audio/wav")


# ---------------------------------------------------------------------------
# Blob + metadata round trip
# ---------------------------------------------------------------------------


async def test_put_blob_returns_public_url(recording_store, blob_store):
    url = await recording_store.put_blob("ann", 7, b"RIFFdata", "audio/wav")
    assert url == "http://test/storage/v1/object/public/recordings/ann/0007.wav"
    assert (blob_store.bucket_dir / "ann" / "0007.wav").read_bytes() == b"RIFFdata"


async def test_metadata_row_written(recording_store):
    url = await recording_store.put_blob("ann", 1, b"RIFF", "audio/wav")
    await recording_store.put_metadata("ann", 1, "Hello there.", url)

    async with get_session() as session:
        row = await RecordingRepository(session).get_recording("ann", 1)
    assert row.filename == "0001.wav"
    assert row.sentence == "Hello there."
    assert row.storage_url == url
    assert await recording_store.list_completed("ann") == {1}


async def test_put_metadata_twice_keeps_one_row(recording_store):
    await recording_store.put_metadata("ann", 1, "First.", "http://test/1")
    await recording_store.put_metadata("ann", 1, "Second.", "http://test/2")
    async with get_session() as session:
        rows = await RecordingRepository(session).list_recordings(owner="ann")
    assert [r.sentence for r in rows] == ["Second."]


async def test_delete_blob_and_metadata(recording_store):
    url = await recording_store.put_blob("ann", 1, b"RIFF", "audio/wav")
    await recording_store.put_metadata("ann", 1, "Hi.", url)

    await recording_store.delete_blob("ann", 1)
    await recording_store.delete_metadata("ann", 1)

    assert await recording_store.list_completed("ann") == set()
    with pytest.raises(RecordingNotFoundError):
        await recording_store.get_blob_url("ann", 1)


async def test_delete_missing_blob_is_quiet(recording_store):
    await recording_store.delete_blob("ann", 42)


async def test_get_blob_url_existing(recording_store):
    await recording_store.put_blob("bob", 2, b"RIFF", "audio/wav")
    url = await recording_store.get_blob_url("bob", 2)
    assert url.endswith("/recordings/bob/0002.wav")


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


async def test_blob_write_error_mapped(recording_store, blob_store):
    blob_store.put = AsyncMock(side_effect=OSError("disk full"))
    with pytest.raises(BlobWriteFailedError, match="disk full"):
        await recording_store.put_blob("ann", 1, b"RIFF", "audio/wav")


async def test_blob_delete_error_mapped(recording_store, blob_store):
    blob_store.delete = AsyncMock(side_effect=PermissionError("read-only"))
    with pytest.raises(DeleteFailedError):
        await recording_store.delete_blob("ann", 1)


async def test_blob_exists_error_mapped(recording_store, blob_store):
    blob_store.exists = AsyncMock(side_effect=OSError("unreachable"))
    with pytest.raises(StoreUnavailableError):
        await recording_store.get_blob_url("ann", 1)


async def test_metadata_errors_mapped(recording_store, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("UPDATE", {}, Exception("database is locked"))

    monkeypatch.setattr(RecordingRepository, "upsert_recording", broken)
    monkeypatch.setattr(RecordingRepository, "delete_recording", broken)
    monkeypatch.setattr(RecordingRepository, "list_completed_sentence_ids", broken)

    with pytest.raises(MetadataWriteFailedError):
        await recording_store.put_metadata("ann", 1, "Hi.", "http://test/1")
    with pytest.raises(DeleteFailedError):
        await recording_store.delete_metadata("ann", 1)
    with pytest.raises(StoreUnavailableError):
        await recording_store.list_completed("ann")


# ---------------------------------------------------------------------------
# Content catalog
# ---------------------------------------------------------------------------


async def test_catalog_reads_tables(use_test_db):
    async with get_session() as session:
        repo = RecordingRepository(session)
        await repo.create_contributor("ann", "Ann Lee")
        await repo.create_contributor("bob", "Bob Kim")
        await repo.add_sentence("Second.", sentence_id=2)
        await repo.add_sentence("First.", sentence_id=1)

    catalog = ContentCatalog()
    assert await catalog.list_contributors() == [
        CatalogContributor(id="ann", display_label="Ann Lee"),
        CatalogContributor(id="bob", display_label="Bob Kim"),
    ]
    assert await catalog.list_sentences() == [
        CatalogSentence(id=1, text="First."),
        CatalogSentence(id=2, text="Second."),
    ]


async def test_catalog_error_mapped(use_test_db, monkeypatch):
    async def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("no such table"))

    monkeypatch.setattr(RecordingRepository, "list_sentences", broken)
    with pytest.raises(StoreUnavailableError, match="list_sentences"):
        await ContentCatalog().list_sentences()
