"""
Blob storage module - object store abstraction for recorded audio.

Factory function for creating blob store instances based on provider configuration.
"""

from .base import BaseBlobStore

__all__ = ["BaseBlobStore", "create_blob_store"]


def create_blob_store(provider: str | None = None, **kwargs) -> BaseBlobStore:
    """
    Factory function to create a blob store based on provider.

    Args:
        provider: Blob provider name ("local", "supabase"); defaults to settings
        **kwargs: Provider-specific configuration

    Returns:
        BaseBlobStore implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider is None:
        from src.core.config import get_settings

        provider = get_settings().blob_provider

    if provider == "local":
        from .local import LocalBlobStore

        return LocalBlobStore(**kwargs)
    elif provider == "supabase":
        from .supabase import SupabaseBlobStore

        return SupabaseBlobStore(**kwargs)
    else:
        raise ValueError(f"Unknown blob provider: {provider}")
