"""
Public blob URLs for the local storage provider.

Serves ``/storage/v1/object/public/{bucket}/{key}``, the same URL shape
the hosted object store publishes, so stored ``storage_url`` values stay
valid whichever provider wrote them.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from src.core.config import get_settings
from src.core.exceptions import RecordingNotFoundError
from src.services.storage.blob.local import LocalBlobStore

router = APIRouter(prefix="/storage/v1/object/public", tags=["storage"])


@router.get("/{bucket}/{key:path}")
async def get_public_object(bucket: str, key: str):
    """Stream a stored blob from the local bucket directory."""
    settings = get_settings()
    if settings.blob_provider != "local" or bucket != settings.storage_bucket:
        raise RecordingNotFoundError(f"{bucket}/{key}")

    store = LocalBlobStore()
    try:
        path = store.path_for(key)
    except ValueError as exc:
        raise RecordingNotFoundError(key) from exc
    if not path.is_file():
        raise RecordingNotFoundError(key)

    media_type = settings.audio_content_type if path.suffix == f".{settings.audio_extension}" else None
    return FileResponse(path, media_type=media_type, filename=path.name)
