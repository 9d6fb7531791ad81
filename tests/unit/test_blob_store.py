"""Tests for the blob store providers and factory.

LocalBlobStore runs against ``tmp_path``; SupabaseBlobStore runs against
``httpx.MockTransport`` so request shapes can be asserted offline.
"""

import httpx
import pytest

from src.services.storage.blob import create_blob_store
from src.services.storage.blob.local import LocalBlobStore
from src.services.storage.blob.supabase import SupabaseBlobStore

# ---------------------------------------------------------------------------
# Local provider
# ---------------------------------------------------------------------------


@pytest.fixture
def local_store(tmp_path):
    return LocalBlobStore(root_dir=tmp_path, bucket="recordings", public_base_url="http://host/")


class TestLocalBlobStore:
    """Verify filesystem layout, overwrite, and key validation."""

    async def test_put_and_read(self, local_store, tmp_path):
        await local_store.put("ann/0001.wav", b"abc", "audio/wav")
        assert (tmp_path / "recordings" / "ann" / "0001.wav").read_bytes() == b"abc"
        assert await local_store.read("ann/0001.wav") == b"abc"
        assert await local_store.exists("ann/0001.wav") is True

    async def test_put_overwrites(self, local_store):
        await local_store.put("ann/0001.wav", b"old", "audio/wav")
        await local_store.put("ann/0001.wav", b"new", "audio/wav")
        assert await local_store.read("ann/0001.wav") == b"new"
        assert not list(local_store.bucket_dir.rglob("*.part"))

    async def test_delete(self, local_store):
        await local_store.put("ann/0001.wav", b"abc", "audio/wav")
        await local_store.delete("ann/0001.wav")
        assert await local_store.exists("ann/0001.wav") is False
        # Deleting again is not an error
        await local_store.delete("ann/0001.wav")

    async def test_read_missing(self, local_store):
        with pytest.raises(FileNotFoundError):
            await local_store.read("ann/0009.wav")

    @pytest.mark.parametrize("key", ["../escape.wav", "ann/../../x.wav", ""])
    async def test_rejects_escaping_keys(self, local_store, key):
        with pytest.raises(ValueError):
            await local_store.put(key, b"x", "audio/wav")

    def test_public_url(self, local_store):
        assert (
            local_store.public_url("ann/0001.wav")
            == "http://host/storage/v1/object/public/recordings/ann/0001.wav"
        )


# ---------------------------------------------------------------------------
# Supabase provider
# ---------------------------------------------------------------------------


def _supabase(handler) -> SupabaseBlobStore:
    return SupabaseBlobStore(
        url="https://proj.supabase.co/",
        api_key="secret",
        bucket="voices",
        transport=httpx.MockTransport(handler),
    )


class TestSupabaseBlobStore:
    """Verify the Storage REST calls and status handling."""

    async def test_put_sends_upsert(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Key": "voices/ann/0001.wav"})

        await _supabase(handler).put("ann/0001.wav", b"RIFF", "audio/wav")

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://proj.supabase.co/storage/v1/object/voices/ann/0001.wav"
        assert request.headers["x-upsert"] == "true"
        assert request.headers["content-type"] == "audio/wav"
        assert request.headers["authorization"] == "Bearer secret"
        assert request.headers["apikey"] == "secret"
        assert request.content == b"RIFF"

    async def test_put_error_status_raises(self):
        store = _supabase(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(httpx.HTTPStatusError):
            await store.put("ann/0001.wav", b"RIFF", "audio/wav")

    async def test_delete_sends_prefixes(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        await _supabase(handler).delete("ann/0001.wav")
        assert seen[0].method == "DELETE"
        assert seen[0].url.path == "/storage/v1/object/voices"
        assert b'"prefixes"' in seen[0].content
        assert b"ann/0001.wav" in seen[0].content

    @pytest.mark.parametrize(("status", "expected"), [(200, True), (404, False), (400, False)])
    async def test_exists(self, status, expected):
        store = _supabase(lambda request: httpx.Response(status))
        assert await store.exists("ann/0001.wav") is expected

    async def test_read(self):
        store = _supabase(lambda request: httpx.Response(200, content=b"audio"))
        assert await store.read("ann/0001.wav") == b"audio"

    async def test_read_missing(self):
        store = _supabase(lambda request: httpx.Response(404, json={"error": "not_found"}))
        with pytest.raises(FileNotFoundError):
            await store.read("ann/0001.wav")

    def test_public_url(self):
        store = _supabase(lambda request: httpx.Response(200))
        assert (
            store.public_url("ann/0001.wav")
            == "https://proj.supabase.co/storage/v1/object/public/voices/ann/0001.wav"
        )

    def test_requires_url(self):
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            SupabaseBlobStore(url="", api_key="k")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def test_factory_local(tmp_path):
    store = create_blob_store("local", root_dir=tmp_path)
    assert isinstance(store, LocalBlobStore)


def test_factory_supabase():
    store = create_blob_store("supabase", url="https://proj.supabase.co", api_key="k")
    assert isinstance(store, SupabaseBlobStore)


def test_factory_unknown():
    with pytest.raises(ValueError, match="Unknown blob provider"):
        create_blob_store("ftp")
