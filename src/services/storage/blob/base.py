"""
Abstract base class for blob storage providers.

A blob store holds opaque audio objects addressed by a key of the form
``{contributor}/{sentence:04d}.{ext}`` and exposes them through a public URL.
"""

from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Interface that every blob storage provider must implement."""

    bucket: str

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write *data* at *key*, overwriting any existing object.

        Args:
            key: Object key inside the bucket.
            data: Raw object bytes.
            content_type: MIME type stored alongside the object.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the object at *key*. Deleting a missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return True if an object is stored at *key*."""

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Return the object bytes at *key*.

        Raises:
            FileNotFoundError: If nothing is stored at *key*.
        """

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the public URL of *key* (the object need not exist)."""
