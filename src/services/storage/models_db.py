"""
SQLAlchemy ORM models for the VoiceCorpus schema.

Tables: ``contributors``, ``sentences``, ``recordings``.
"""

from datetime import UTC, datetime

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.services.storage.database import Base


class Contributor(Base):
    """A voice owner who records sentences."""

    __tablename__ = "contributors"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))

    def __repr__(self) -> str:
        return f"<Contributor id={self.id} name={self.name!r}>"


class Sentence(Base):
    """A sentence to be read aloud; ``id`` is its stable ordinal."""

    __tablename__ = "sentences"

    id: Mapped[int] = mapped_column(primary_key=True)
    text: Mapped[str] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Sentence id={self.id}>"


class Recording(Base):
    """Metadata for one stored recording.

    ``owner`` is the contributor name rather than a foreign key: deleting a
    contributor leaves their recordings in place.
    """

    __tablename__ = "recordings"
    __table_args__ = (UniqueConstraint("owner", "sentence_id", name="uq_recordings_owner_sentence"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner: Mapped[str] = mapped_column(String(64), index=True)
    sentence_id: Mapped[int] = mapped_column()
    filename: Mapped[str] = mapped_column(String(64))
    sentence: Mapped[str] = mapped_column(Text, default="")
    storage_url: Mapped[str] = mapped_column(String(1024))
    content_type: Mapped[str] = mapped_column(String(64), default="audio/wav")
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    @property
    def key(self) -> str:
        """Blob key of this recording (``{owner}/{filename}``)."""
        return f"{self.owner}/{self.filename}"

    def __repr__(self) -> str:
        return f"<Recording id={self.id} owner={self.owner!r} sentence={self.sentence_id}>"
