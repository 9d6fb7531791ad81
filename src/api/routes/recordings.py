"""
Recording administration REST endpoints.

Listing, per-owner statistics, per-contributor progress, and bulk export
of recordings as a dataset zip.
"""

import logging

from fastapi import APIRouter, Query
from fastapi.responses import Response

from src.core.config import get_settings
from src.core.models import (
    ExportRequest,
    OwnerStat,
    ProgressResponse,
    RecordingResponse,
)
from src.core.utils import progress_percent
from src.services.storage.blob import create_blob_store
from src.services.storage.database import get_session
from src.services.storage.export import build_dataset_archive
from src.services.storage.repository import RecordingRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recordings"])


def _to_response(recording) -> RecordingResponse:
    """Convert an ORM Recording object to its API response model."""
    return RecordingResponse(
        id=recording.id,
        owner=recording.owner,
        sentence_id=recording.sentence_id,
        filename=recording.filename,
        sentence=recording.sentence,
        storage_url=recording.storage_url,
        content_type=recording.content_type,
        created_at=recording.created_at,
        updated_at=recording.updated_at,
    )


@router.get("/recordings", response_model=list[RecordingResponse])
async def list_recordings(owner: str | None = Query(None)):
    """List recordings, optionally for a single owner."""
    async with get_session() as session:
        recordings = await RecordingRepository(session).list_recordings(owner=owner)
    return [_to_response(r) for r in recordings]


@router.get("/recordings/stats", response_model=list[OwnerStat])
async def recording_stats():
    """Number of recordings per owner."""
    async with get_session() as session:
        counts = await RecordingRepository(session).count_by_owner()
    return [OwnerStat(owner=owner, count=count) for owner, count in counts.items()]


@router.post("/recordings/export")
async def export_recordings(body: ExportRequest | None = None):
    """Download selected recordings (all when ``ids`` is empty) as a zip."""
    ids = body.ids if body else []
    async with get_session() as session:
        repo = RecordingRepository(session)
        recordings = (
            await repo.list_recordings_by_ids(ids) if ids else await repo.list_recordings()
        )

    archive, skipped = await build_dataset_archive(recordings, create_blob_store())
    filename = get_settings().export_archive_name
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "X-Skipped-Count": str(len(skipped)),
    }
    return Response(content=archive, media_type="application/zip", headers=headers)


@router.get("/progress", response_model=list[ProgressResponse])
async def contributor_progress():
    """Recorded sentence count and percentage for every contributor."""
    async with get_session() as session:
        repo = RecordingRepository(session)
        contributors = await repo.list_contributors()
        total = await repo.count_sentences()
        counts = await repo.count_by_owner()

    return [
        ProgressResponse(
            contributor=c.name,
            display_name=c.display_name,
            recorded_count=counts.get(c.name, 0),
            total_sentences=total,
            percent=round(progress_percent(counts.get(c.name, 0), total), 1),
        )
        for c in contributors
    ]
