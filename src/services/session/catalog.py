"""
Content catalog: read-only source of sentences and contributors.

The session controller only depends on :class:`BaseContentCatalog`; the
default :class:`ContentCatalog` reads the relational tables through
:class:`RecordingRepository`.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import StoreUnavailableError
from src.services.storage.database import get_session
from src.services.storage.repository import RecordingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogContributor:
    id: str
    display_label: str


@dataclass(frozen=True)
class CatalogSentence:
    id: int
    text: str


class BaseContentCatalog(ABC):
    """Read-only contract consumed by recording sessions."""

    @abstractmethod
    async def list_contributors(self) -> list[CatalogContributor]:
        """Return contributors ordered by creation order."""

    @abstractmethod
    async def list_sentences(self) -> list[CatalogSentence]:
        """Return sentences ordered by id ascending (traversal order)."""


class ContentCatalog(BaseContentCatalog):
    """Catalog backed by the ``contributors`` and ``sentences`` tables."""

    async def list_contributors(self) -> list[CatalogContributor]:
        try:
            async with get_session() as session:
                rows = await RecordingRepository(session).list_contributors()
        except SQLAlchemyError as exc:
            logger.warning("Listing contributors failed: %s", exc)
            raise StoreUnavailableError("list_contributors", str(exc)) from exc
        return [CatalogContributor(id=row.name, display_label=row.display_name) for row in rows]

    async def list_sentences(self) -> list[CatalogSentence]:
        try:
            async with get_session() as session:
                rows = await RecordingRepository(session).list_sentences()
        except SQLAlchemyError as exc:
            logger.warning("Listing sentences failed: %s", exc)
            raise StoreUnavailableError("list_sentences", str(exc)) from exc
        return [CatalogSentence(id=row.id, text=row.text) for row in rows]
