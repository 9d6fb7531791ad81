"""Shared utility functions for VoiceCorpus."""

import re

from src.core.exceptions import InvalidContributorNameError

_CONTRIBUTOR_NAME_RE = re.compile(r"[a-z0-9_]+")


def is_valid_contributor_name(name: str) -> bool:
    """Return True if *name* contains only lowercase letters, digits and underscore."""
    return bool(_CONTRIBUTOR_NAME_RE.fullmatch(name or ""))


def validate_contributor_name(name: str) -> str:
    """Return *name* unchanged or raise :class:`InvalidContributorNameError`."""
    if not is_valid_contributor_name(name):
        raise InvalidContributorNameError(name)
    return name


def recording_filename(sentence_id: int, extension: str = "wav") -> str:
    """Return the stored filename for a sentence, e.g. ``0007.wav``."""
    return f"{sentence_id:04d}.{extension.lstrip('.')}"


def recording_key(contributor_id: str, sentence_id: int, extension: str = "wav") -> str:
    """Return the blob key ``{contributor}/{sentence:04d}.{ext}``.

    This key joins blob storage and metadata rows; existing datasets depend
    on its exact shape.
    """
    return f"{contributor_id}/{recording_filename(sentence_id, extension)}"


def progress_percent(completed: int, total: int) -> float:
    """Return ``completed / total * 100``, or ``0.0`` for an empty catalog."""
    if total <= 0:
        return 0.0
    return completed / total * 100
