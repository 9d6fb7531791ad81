"""
Local filesystem blob store.

Objects live under ``{storage_dir}/{bucket}/{key}`` and are published at
``{public_base_url}/storage/v1/object/public/{bucket}/{key}``, the same URL
shape the hosted object store uses, served by the API for local setups.
"""

import logging
from pathlib import Path

from src.core.config import get_settings
from src.services.storage.blob.base import BaseBlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BaseBlobStore):
    """Blob store backed by a directory on disk."""

    def __init__(
        self,
        root_dir: str | Path | None = None,
        bucket: str | None = None,
        public_base_url: str | None = None,
    ) -> None:
        """Initialize the local store.

        Args:
            root_dir: Storage root (falls back to ``settings.storage_dir``).
            bucket: Bucket sub-directory (falls back to ``settings.storage_bucket``).
            public_base_url: URL prefix used to build public object URLs.
        """
        settings = get_settings()
        self.bucket = bucket or settings.storage_bucket
        self._root = Path(root_dir or settings.storage_dir).resolve()
        self._base_url = (public_base_url or settings.public_base_url).rstrip("/")

    @property
    def bucket_dir(self) -> Path:
        return self._root / self.bucket

    def path_for(self, key: str) -> Path:
        """Resolve *key* to a file path inside the bucket directory.

        Raises:
            ValueError: If the key escapes the bucket directory.
        """
        bucket_dir = self.bucket_dir.resolve()
        path = (bucket_dir / key).resolve()
        if not path.is_relative_to(bucket_dir) or path == bucket_dir:
            raise ValueError(f"Invalid blob key: {key!r}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".part")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
        logger.debug("Stored blob %s (%d bytes, %s)", key, len(data), content_type)

    async def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    async def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    async def read(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.is_file():
            raise FileNotFoundError(key)
        return path.read_bytes()

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self.bucket}/{key}"
