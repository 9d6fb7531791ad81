"""Integration test fixtures for VoiceCorpus.

Provides async HTTP client and sync TestClient (for WebSocket) that use
an in-memory SQLite database with real repository operations and a local
blob store rooted in a temporary directory.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from src.api.app import create_app
from src.core.config import get_settings
from src.services.session.manager import reset_session_manager
from src.services.storage import database
from src.services.storage.repository import RecordingRepository


@pytest.fixture
def settings_env(tmp_path, monkeypatch):
    """Point blob storage at ``tmp_path`` and public URLs at the test host."""
    monkeypatch.setenv("BLOB_PROVIDER", "local")
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("STORAGE_BUCKET", "recordings")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://test")
    monkeypatch.setenv("TRAINING_ENDPOINT_URL", "")
    get_settings.cache_clear()
    reset_session_manager()
    yield get_settings()
    reset_session_manager()
    get_settings.cache_clear()


@pytest.fixture
def app(settings_env):
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
async def async_client(app, db_engine):
    """AsyncClient backed by the in-memory test engine.

    Injects the test engine into the database module so that all routes
    use the same in-memory SQLite with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    database.reset_engine()


@pytest.fixture
def test_client(app, db_engine):
    """Synchronous TestClient for WebSocket tests.

    Uses the same DB injection pattern as async_client.
    """
    database._engine = db_engine
    database._session_factory = None
    with TestClient(app) as c:
        yield c
    database.reset_engine()


@pytest.fixture
async def seeded_catalog(async_client):
    """Two contributors (ann, bob) and three sentences, written through the API's DB."""
    async with database.get_session() as session:
        repo = RecordingRepository(session)
        await repo.create_contributor("ann", "Ann Lee")
        await repo.create_contributor("bob", "Bob Kim")
        for text in ("The first sentence.", "The second sentence.", "The third sentence."):
            await repo.add_sentence(text)
