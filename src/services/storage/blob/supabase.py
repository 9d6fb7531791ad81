"""
Supabase Storage blob store.

Talks to the Supabase Storage REST API with ``httpx``.  Transient
transport failures are retried up to 3 times with exponential backoff;
HTTP error statuses are raised to the caller unchanged.
"""

import logging

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.core.config import get_settings
from src.services.storage.blob.base import BaseBlobStore

logger = logging.getLogger(__name__)

_retry_transport = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception_type(httpx.TransportError),
    reraise=True,
)


class SupabaseBlobStore(BaseBlobStore):
    """Blob store backed by a Supabase Storage bucket.

    Uploads use ``x-upsert`` so writing an existing key overwrites it.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        bucket: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Supabase store.

        Args:
            url: Project URL, e.g. ``https://xyz.supabase.co`` (falls back to settings).
            api_key: Service or anon key sent as ``apikey`` and bearer token.
            bucket: Storage bucket name (falls back to ``settings.storage_bucket``).
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport override (used in tests).
        """
        settings = get_settings()
        self._url = (url or settings.supabase_url).rstrip("/")
        if not self._url:
            raise ValueError("SUPABASE_URL is required when blob_provider='supabase'")
        self._api_key = api_key if api_key is not None else settings.supabase_key
        self.bucket = bucket or settings.storage_bucket
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._url}/storage/v1",
            headers={
                "apikey": self._api_key,
                "Authorization": f"Bearer {self._api_key}",
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    @_retry_transport
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        async with self._client() as client:
            resp = await client.post(
                f"/object/{self.bucket}/{key}",
                content=data,
                headers={
                    "Content-Type": content_type,
                    "cache-control": "max-age=3600",
                    "x-upsert": "true",
                },
            )
            resp.raise_for_status()
        logger.debug("Uploaded blob %s to bucket %s", key, self.bucket)

    @_retry_transport
    async def delete(self, key: str) -> None:
        async with self._client() as client:
            resp = await client.request(
                "DELETE",
                f"/object/{self.bucket}",
                json={"prefixes": [key]},
            )
            resp.raise_for_status()

    @_retry_transport
    async def exists(self, key: str) -> bool:
        async with self._client() as client:
            resp = await client.head(f"/object/{self.bucket}/{key}")
        # Supabase answers 400 "Object not found" as well as 404 for missing keys
        if resp.status_code in (400, 404):
            return False
        resp.raise_for_status()
        return True

    @_retry_transport
    async def read(self, key: str) -> bytes:
        async with self._client() as client:
            resp = await client.get(f"/object/{self.bucket}/{key}")
        if resp.status_code in (400, 404):
            raise FileNotFoundError(key)
        resp.raise_for_status()
        return resp.content

    def public_url(self, key: str) -> str:
        return f"{self._url}/storage/v1/object/public/{self.bucket}/{key}"
