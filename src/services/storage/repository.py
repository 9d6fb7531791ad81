"""
CRUD repository for all VoiceCorpus tables.

``RecordingRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ContributorAlreadyExistsError, InvalidContributorError
from src.core.utils import validate_contributor_name
from src.services.storage.models_db import Contributor, Recording, Sentence

logger = logging.getLogger(__name__)


class RecordingRepository:
    """Data-access layer for the VoiceCorpus schema.

    All methods use ``flush()`` instead of ``commit()`` so transaction
    boundaries are controlled by the caller (typically ``get_session()``
    context manager which commits on clean exit).

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Contributors
    # ------------------------------------------------------------------

    async def list_contributors(self) -> list[Contributor]:
        """Return contributors in creation order."""
        stmt = select(Contributor).order_by(Contributor.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_contributor(self, name: str) -> Contributor | None:
        """Return a contributor by name, or ``None`` if not found."""
        stmt = select(Contributor).where(Contributor.name == name)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_contributor(self, name: str, display_name: str) -> Contributor:
        """Create a contributor after validating the machine-safe name.

        Raises:
            InvalidContributorNameError: If *name* is not ``[a-z0-9_]+``.
            ContributorAlreadyExistsError: If *name* is already taken.
        """
        validate_contributor_name(name)
        if await self.get_contributor(name) is not None:
            raise ContributorAlreadyExistsError(name)
        contributor = Contributor(name=name, display_name=display_name)
        self._session.add(contributor)
        await self._session.flush()
        return contributor

    async def delete_contributor(self, name: str) -> None:
        """Delete a contributor or raise :class:`InvalidContributorError`.

        Recordings owned by the contributor are kept.
        """
        contributor = await self.get_contributor(name)
        if contributor is None:
            raise InvalidContributorError(name)
        await self._session.delete(contributor)
        await self._session.flush()

    # ------------------------------------------------------------------
    # Sentences
    # ------------------------------------------------------------------

    async def list_sentences(self) -> list[Sentence]:
        """Return sentences ordered by id ascending (traversal order)."""
        stmt = select(Sentence).order_by(Sentence.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_sentences(self) -> int:
        """Return the catalog size."""
        result = await self._session.execute(select(func.count(Sentence.id)))
        return int(result.scalar_one())

    async def get_sentence(self, sentence_id: int) -> Sentence | None:
        """Return a sentence by id, or ``None`` if not found."""
        return await self._session.get(Sentence, sentence_id)

    async def add_sentence(self, text: str, sentence_id: int | None = None) -> Sentence:
        """Append a sentence; without an explicit id it takes ``max(id) + 1``."""
        if sentence_id is None:
            result = await self._session.execute(select(func.max(Sentence.id)))
            sentence_id = (result.scalar_one() or 0) + 1
        sentence = Sentence(id=sentence_id, text=text)
        self._session.add(sentence)
        await self._session.flush()
        return sentence

    # ------------------------------------------------------------------
    # Recordings (metadata rows)
    # ------------------------------------------------------------------

    async def list_recordings(self, owner: str | None = None) -> list[Recording]:
        """Return recordings ordered by owner then sentence, optionally for one owner."""
        stmt = select(Recording).order_by(Recording.owner, Recording.sentence_id)
        if owner is not None:
            stmt = stmt.where(Recording.owner == owner)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_recordings_by_ids(self, ids: list[int]) -> list[Recording]:
        """Return the recordings whose primary key is in *ids*."""
        if not ids:
            return []
        stmt = (
            select(Recording)
            .where(Recording.id.in_(ids))
            .order_by(Recording.owner, Recording.sentence_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_completed_sentence_ids(self, owner: str) -> set[int]:
        """Return the sentence ids that *owner* has a recording for."""
        stmt = select(Recording.sentence_id).where(Recording.owner == owner)
        result = await self._session.execute(stmt)
        return {sentence_id for (sentence_id,) in result.all()}

    async def get_recording(self, owner: str, sentence_id: int) -> Recording | None:
        """Return the recording for ``(owner, sentence_id)``, or ``None``."""
        stmt = select(Recording).where(
            Recording.owner == owner,
            Recording.sentence_id == sentence_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_recording(
        self,
        owner: str,
        sentence_id: int,
        filename: str,
        sentence: str,
        storage_url: str,
        content_type: str = "audio/wav",
    ) -> Recording:
        """Insert or replace the single row keyed on ``(owner, sentence_id)``."""
        recording = await self.get_recording(owner, sentence_id)
        if recording is None:
            recording = Recording(
                owner=owner,
                sentence_id=sentence_id,
                filename=filename,
                sentence=sentence,
                storage_url=storage_url,
                content_type=content_type,
            )
            self._session.add(recording)
        else:
            recording.filename = filename
            recording.sentence = sentence
            recording.storage_url = storage_url
            recording.content_type = content_type
            recording.updated_at = datetime.now(UTC)
        await self._session.flush()
        return recording

    async def delete_recording(self, owner: str, sentence_id: int) -> bool:
        """Delete the row for ``(owner, sentence_id)``; return whether one existed."""
        stmt = delete(Recording).where(
            Recording.owner == owner,
            Recording.sentence_id == sentence_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return bool(result.rowcount)

    async def count_by_owner(self) -> dict[str, int]:
        """Return ``{owner: number_of_recordings}`` for every owner with recordings."""
        stmt = (
            select(Recording.owner, func.count(Recording.id))
            .group_by(Recording.owner)
            .order_by(Recording.owner)
        )
        result = await self._session.execute(stmt)
        return {owner: int(count) for owner, count in result.all()}
