"""Shared pytest fixtures for VoiceCorpus test suite.

Provides common test fixtures used across unit and integration tests,
including synthetic audio, an in-memory database, and in-memory
stand-ins for the content catalog, recording store, and audio input
consumed by the recording session controller.
"""

import asyncio
import struct

import pytest

from src.core.exceptions import DeviceUnavailableError, RecordingNotFoundError
from src.services.audio.recorder import AudioInput
from src.services.session.catalog import BaseContentCatalog, CatalogContributor, CatalogSentence
from src.services.session.controller import RecordingSessionController
from src.services.session.store import BaseRecordingStore

# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM audio data.
    """
    import math

    sample_rate = 16000
    duration = 1.0
    frequency = 440.0
    amplitude = 16000  # ~50% of max int16

    samples = []
    for i in range(int(sample_rate * duration)):
        value = int(amplitude * math.sin(2 * math.pi * frequency * i / sample_rate))
        samples.append(struct.pack("<h", value))
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono).

    Returns:
        bytes: Raw PCM silence data (all zeros).
    """
    sample_rate = 16000
    return b"\x00\x00" * sample_rate


@pytest.fixture
def sample_wav_bytes(sample_pcm_bytes):
    """The sine-wave PCM wrapped in an in-memory WAV container."""
    import io
    import wave

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        wf.writeframes(sample_pcm_bytes)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from src.services.storage import models_db  # noqa: F401
    from src.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a RecordingRepository bound to the test session."""
    from src.services.storage.repository import RecordingRepository

    return RecordingRepository(db_session)


@pytest.fixture
def use_test_db(db_engine):
    """Route ``get_session()`` to the in-memory engine for the test's duration."""
    from src.services.storage import database

    database._engine = db_engine
    database._session_factory = None
    yield db_engine
    database.reset_engine()


# ---------------------------------------------------------------------------
# Session collaborator fakes
# ---------------------------------------------------------------------------


class FakeCatalog(BaseContentCatalog):
    """In-memory catalog; set ``error`` to make every call raise it."""

    def __init__(self, contributors, sentences):
        self.contributors = list(contributors)
        self.sentences = list(sentences)
        self.error: Exception | None = None

    async def list_contributors(self):
        if self.error is not None:
            raise self.error
        return list(self.contributors)

    async def list_sentences(self):
        if self.error is not None:
            raise self.error
        return list(self.sentences)


class FakeStore(BaseRecordingStore):
    """In-memory recording store with a call log.

    ``failures`` maps an operation name to the exception it raises,
    ``delays`` to seconds slept before answering, and ``gates`` to an
    ``asyncio.Event`` the operation waits on.
    """

    def __init__(self):
        self.blobs: dict[tuple[str, int], bytes] = {}
        self.rows: dict[tuple[str, int], dict] = {}
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def _enter(self, op: str) -> None:
        self.calls.append(op)
        if op in self.gates:
            await self.gates[op].wait()
        if op in self.delays:
            await asyncio.sleep(self.delays[op])
        if op in self.failures:
            raise self.failures[op]

    @staticmethod
    def url_for(contributor_id: str, sentence_id: int) -> str:
        return f"memory://recordings/{contributor_id}/{sentence_id:04d}.wav"

    def seed(self, contributor_id: str, sentence_id: int, data: bytes = b"old") -> None:
        """Pretend a recording was stored by an earlier session."""
        self.blobs[(contributor_id, sentence_id)] = data
        self.rows[(contributor_id, sentence_id)] = {
            "sentence": f"seeded {sentence_id}",
            "url": self.url_for(contributor_id, sentence_id),
        }

    async def list_completed(self, contributor_id):
        await self._enter("list_completed")
        return {sid for (cid, sid) in self.rows if cid == contributor_id}

    async def put_blob(self, contributor_id, sentence_id, data, content_type):
        await self._enter("put_blob")
        self.blobs[(contributor_id, sentence_id)] = data
        return self.url_for(contributor_id, sentence_id)

    async def delete_blob(self, contributor_id, sentence_id):
        await self._enter("delete_blob")
        self.blobs.pop((contributor_id, sentence_id), None)

    async def get_blob_url(self, contributor_id, sentence_id):
        await self._enter("get_blob_url")
        if (contributor_id, sentence_id) not in self.blobs:
            raise RecordingNotFoundError(f"{contributor_id}/{sentence_id:04d}.wav")
        return self.url_for(contributor_id, sentence_id)

    async def put_metadata(self, contributor_id, sentence_id, sentence_text, blob_url):
        await self._enter("put_metadata")
        self.rows[(contributor_id, sentence_id)] = {"sentence": sentence_text, "url": blob_url}

    async def delete_metadata(self, contributor_id, sentence_id):
        await self._enter("delete_metadata")
        self.rows.pop((contributor_id, sentence_id), None)


class UnavailableAudioInput(AudioInput):
    """Audio input whose device can never be acquired."""

    @property
    def buffered_duration(self):
        return 0.0

    async def open(self):
        raise DeviceUnavailableError("Microphone access denied")

    def write(self, data):
        raise DeviceUnavailableError("Microphone access denied")

    async def close(self):
        raise DeviceUnavailableError("Microphone access denied")

    def abort(self):
        pass


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def catalog():
    """Two contributors and three sentences."""
    return FakeCatalog(
        contributors=[
            CatalogContributor(id="ann", display_label="Ann Lee"),
            CatalogContributor(id="bob", display_label="Bob Kim"),
        ],
        sentences=[CatalogSentence(id=i, text=f"Sentence number {i}.") for i in (1, 2, 3)],
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def unavailable_input():
    """Factory returning an audio input that cannot be opened."""
    return UnavailableAudioInput


@pytest.fixture
def make_controller(catalog, store, clock):
    """Factory for controllers wired to the in-memory collaborators."""

    def _make(**kwargs) -> RecordingSessionController:
        kwargs.setdefault("catalog", catalog)
        kwargs.setdefault("store", store)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("session_id", "test")
        return RecordingSessionController(**kwargs)

    return _make


@pytest.fixture
async def controller(make_controller):
    """Controller initialised for the first contributor (``ann``)."""
    ctrl = make_controller()
    await ctrl.initialize()
    return ctrl
