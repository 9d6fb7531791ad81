"""
Dataset archive export.

Bundles selected recordings into a zip: one audio entry per recording
under ``audio/{owner}/{filename}`` plus ``json/dataset.json`` holding the
metadata rows of every selected recording.
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
from typing import Any

import httpx

from src.core.exceptions import ExportError
from src.services.storage.blob.base import BaseBlobStore
from src.services.storage.models_db import Recording

logger = logging.getLogger(__name__)


def recording_to_dict(recording: Recording) -> dict[str, Any]:
    """Serialise a metadata row for ``dataset.json``."""
    return {
        "id": recording.id,
        "owner": recording.owner,
        "sentence_id": recording.sentence_id,
        "filename": recording.filename,
        "sentence": recording.sentence,
        "storage_url": recording.storage_url,
        "content_type": recording.content_type,
        "created_at": recording.created_at.isoformat() if recording.created_at else None,
        "updated_at": recording.updated_at.isoformat() if recording.updated_at else None,
    }


def archive_entry_name(recording: Recording) -> str:
    """Return the zip path of a recording's audio."""
    return f"audio/{recording.owner}/{recording.filename}"


async def build_dataset_archive(
    recordings: list[Recording],
    blob_store: BaseBlobStore,
) -> tuple[bytes, list[str]]:
    """Build the dataset zip in memory.

    Audio that cannot be read from the blob store is skipped and logged;
    its metadata row is still listed in ``dataset.json``.

    Args:
        recordings: Metadata rows to include.
        blob_store: Store the audio is read from.

    Returns:
        ``(zip_bytes, skipped_keys)``.

    Raises:
        ExportError: If no recordings were selected.
    """
    if not recordings:
        raise ExportError(detail="No recordings selected", status_code=422)

    skipped: list[str] = []
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for recording in recordings:
            try:
                data = await blob_store.read(recording.key)
            except (FileNotFoundError, OSError, ValueError, httpx.HTTPError) as exc:
                logger.warning("Skipping %s in export: %s", recording.key, exc)
                skipped.append(recording.key)
                continue
            zf.writestr(archive_entry_name(recording), data)

        metadata = [recording_to_dict(r) for r in recordings]
        zf.writestr("json/dataset.json", json.dumps(metadata, ensure_ascii=False, indent=2))

    logger.info(
        "Built dataset archive: %d recordings, %d skipped",
        len(recordings) - len(skipped),
        len(skipped),
    )
    return buf.getvalue(), skipped
