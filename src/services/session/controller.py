"""
Recording session controller.

Owns the per-sentence recording workflow for one reader: which sentence is
active, whether audio is being captured, whether the captured audio has
been persisted, and the last notice shown to the reader.

State lives in a single ``CaptureState`` value plus a few orthogonal data
fields (sentence index, completed set, pending audio).  Operations that
wait on a collaborator run under an exclusive guard; a second such
operation arriving while one is in flight is rejected with
:class:`SessionBusyError`, never queued.

Caller mistakes (unknown contributor, out-of-range ordinal, illegal
transition) raise without touching state.  Collaborator failures (device,
catalog, store) are caught at the operation boundary and become a
:class:`Notice` naming the failed step.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TypeVar

from src.core.exceptions import (
    BlobWriteFailedError,
    DeleteFailedError,
    DeviceUnavailableError,
    IllegalTransitionError,
    InvalidContributorError,
    MetadataWriteFailedError,
    OutOfRangeError,
    RecordingNotFoundError,
    SessionBusyError,
    StoreUnavailableError,
    VoiceCorpusError,
)
from src.core.models import CaptureState, Direction, NoticeLevel
from src.core.utils import progress_percent, recording_key
from src.services.audio.processor import AudioProcessor
from src.services.audio.recorder import AudioInput, BufferedAudioInput
from src.services.session.catalog import BaseContentCatalog, CatalogContributor, CatalogSentence
from src.services.session.store import BaseRecordingStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLLABORATOR_ERRORS = (
    DeviceUnavailableError,
    StoreUnavailableError,
    BlobWriteFailedError,
    MetadataWriteFailedError,
    DeleteFailedError,
    RecordingNotFoundError,
)


@dataclass(frozen=True)
class Notice:
    """User-visible outcome of an operation."""

    level: NoticeLevel
    code: str
    message: str
    requires_confirmation: bool = False


@dataclass(frozen=True)
class Playback:
    """Audio handed to the client for local playback (bytes or a URL)."""

    content_type: str
    data: bytes | None = None
    url: str | None = None


class RecordingSessionController:
    """State machine driving one recording session.

    Args:
        catalog: Read-only source of sentences and contributors.
        store: Durable store for audio blobs and metadata rows.
        input_factory: Returns a fresh :class:`AudioInput` per capture.
        store_timeout: Upper bound in seconds on each catalog/store call;
            ``None`` or ``0`` disables it.
        content_type: MIME type of captured audio.
        extension: Audio extension used for blob keys in messages.
        processor: Audio helper used for silence detection and duration.
        silence_threshold: RMS below which a capture is flagged silent.
        clock: Monotonic time source for the elapsed counter.
        session_id: Identifier used in log lines.
    """

    def __init__(
        self,
        catalog: BaseContentCatalog,
        store: BaseRecordingStore,
        input_factory: Callable[[], AudioInput] = BufferedAudioInput,
        store_timeout: float | None = None,
        content_type: str = "audio/wav",
        extension: str = "wav",
        processor: AudioProcessor | None = None,
        silence_threshold: float = 0.01,
        clock: Callable[[], float] = time.monotonic,
        session_id: str = "-",
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._input_factory = input_factory
        self._timeout = store_timeout or None
        self._content_type = content_type
        self._extension = extension
        self._processor = processor or AudioProcessor()
        self._silence_threshold = silence_threshold
        self._clock = clock
        self.session_id = session_id

        self._contributors: list[CatalogContributor] = []
        self._sentences: list[CatalogSentence] = []
        self._contributor: str | None = None
        self._index = 0
        self._state = CaptureState.idle
        self._completed: set[int] = set()
        self._pending: bytes | None = None
        self._pending_duration = 0.0
        self._input: AudioInput | None = None
        self._capture_started: float | None = None
        self._elapsed = 0
        self._notice: Notice | None = None
        self._busy = False

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def contributor(self) -> str | None:
        return self._contributor

    @property
    def contributors(self) -> list[CatalogContributor]:
        return list(self._contributors)

    @property
    def sentence_index(self) -> int:
        return self._index

    @property
    def total_sentences(self) -> int:
        return len(self._sentences)

    @property
    def current_sentence(self) -> CatalogSentence | None:
        if not self._sentences:
            return None
        return self._sentences[self._index]

    @property
    def completed(self) -> frozenset[int]:
        return frozenset(self._completed)

    @property
    def is_recorded(self) -> bool:
        sentence = self.current_sentence
        return sentence is not None and sentence.id in self._completed

    @property
    def progress_percent(self) -> float:
        return progress_percent(len(self._completed), len(self._sentences))

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def pending_duration_seconds(self) -> float:
        return self._pending_duration if self._pending is not None else 0.0

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds captured so far; frozen once the capture stops."""
        if self._state is CaptureState.capturing and self._capture_started is not None:
            return int(self._clock() - self._capture_started)
        return self._elapsed

    @property
    def buffered_seconds(self) -> float:
        """Seconds of audio received by the open input, 0 when not capturing."""
        if self._state is CaptureState.capturing and self._input is not None:
            return self._input.buffered_duration
        return 0.0

    @property
    def notice(self) -> Notice | None:
        return self._notice

    @property
    def busy(self) -> bool:
        return self._busy

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        if self._busy:
            raise SessionBusyError()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    async def _bounded(self, step: str, call: Awaitable[T]) -> T:
        """Await a collaborator call, mapping expiry to StoreUnavailableError."""
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self._timeout)
        except TimeoutError as exc:
            raise StoreUnavailableError(step, f"no answer within {self._timeout:g}s") from exc

    def _set_state(self, state: CaptureState) -> None:
        if state is not self._state:
            logger.info("Session %s: %s -> %s", self.session_id, self._state, state)
        self._state = state

    def _say(
        self,
        level: NoticeLevel,
        code: str,
        message: str,
        requires_confirmation: bool = False,
    ) -> Notice:
        self._notice = Notice(level, code, message, requires_confirmation)
        return self._notice

    def _fail(self, step: str, exc: VoiceCorpusError) -> Notice:
        logger.warning("Session %s: %s failed: %s", self.session_id, step, exc.detail)
        return self._say(NoticeLevel.error, exc.code, f"Failed while {step}: {exc.detail}")

    def _enter_idle(self) -> None:
        self._pending = None
        self._pending_duration = 0.0
        self._set_state(CaptureState.idle)

    def _abort_capture(self) -> None:
        if self._input is not None:
            self._input.abort()
            self._input = None
        self._capture_started = None

    def _ensure_not_busy(self) -> None:
        if self._busy:
            raise SessionBusyError()

    def _ordinal_label(self) -> str:
        return f"sentence {self._index + 1} of {len(self._sentences)}"

    def _key(self, sentence_id: int) -> str:
        return recording_key(self._contributor or "", sentence_id, self._extension)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def initialize(self, contributor_id: str | None = None) -> None:
        """Load the catalog and the completed set for the starting contributor.

        The first contributor in creation order is used unless
        *contributor_id* is given.

        Raises:
            InvalidContributorError: If *contributor_id* is not in the catalog.
            StoreUnavailableError: If the catalog or store cannot be read.
        """
        async with self._exclusive():
            contributors = await self._bounded(
                "list_contributors", self._catalog.list_contributors()
            )
            sentences = await self._bounded("list_sentences", self._catalog.list_sentences())
            if contributor_id is None:
                chosen = contributors[0].id if contributors else None
            elif any(c.id == contributor_id for c in contributors):
                chosen = contributor_id
            else:
                raise InvalidContributorError(contributor_id)

            completed: set[int] = set()
            if chosen is not None:
                completed = set(
                    await self._bounded("list_completed", self._store.list_completed(chosen))
                )

            self._contributors = list(contributors)
            self._sentences = sorted(sentences, key=lambda s: s.id)
            self._contributor = chosen
            self._completed = completed
            self._index = 0
            self._elapsed = 0
            self._notice = None
            self._enter_idle()
            logger.info(
                "Session %s initialised: contributor=%s sentences=%d completed=%d",
                self.session_id,
                chosen,
                len(self._sentences),
                len(completed),
            )

    # ------------------------------------------------------------------
    # Contributor
    # ------------------------------------------------------------------

    async def select_contributor(
        self, contributor_id: str, confirm_discard: bool = False
    ) -> Notice:
        """Switch the active contributor and reload their completed set.

        The sentence index is kept.  An unsaved or in-progress capture is
        only discarded when *confirm_discard* is set; otherwise a
        confirmation notice is returned and nothing changes.

        Raises:
            InvalidContributorError: If *contributor_id* is not in the catalog.
        """
        async with self._exclusive():
            try:
                contributors = await self._bounded(
                    "list_contributors", self._catalog.list_contributors()
                )
            except _COLLABORATOR_ERRORS as exc:
                return self._fail("loading contributors", exc)

            match = next((c for c in contributors if c.id == contributor_id), None)
            if match is None:
                raise InvalidContributorError(contributor_id)
            self._contributors = list(contributors)

            if contributor_id == self._contributor:
                return self._say(
                    NoticeLevel.info,
                    "CONTRIBUTOR_UNCHANGED",
                    f"Already recording as {match.display_label}.",
                )

            unsaved = self._state in (CaptureState.capturing, CaptureState.captured_unsaved)
            if unsaved and not confirm_discard:
                return self._say(
                    NoticeLevel.warning,
                    "CONFIRM_DISCARD",
                    f"Switching to {match.display_label} discards the unsaved recording. Continue?",
                    requires_confirmation=True,
                )

            try:
                completed = await self._bounded(
                    "list_completed", self._store.list_completed(contributor_id)
                )
            except _COLLABORATOR_ERRORS as exc:
                return self._fail("loading recorded sentences", exc)

            self._abort_capture()
            self._elapsed = 0
            self._enter_idle()
            self._contributor = contributor_id
            self._completed = set(completed)
            logger.info(
                "Session %s: contributor -> %s (%d recorded)",
                self.session_id,
                contributor_id,
                len(self._completed),
            )
            return self._say(
                NoticeLevel.info,
                "CONTRIBUTOR_SELECTED",
                f"Recording as {match.display_label}: "
                f"{len(self._completed)} of {len(self._sentences)} sentences recorded.",
            )

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    async def start_capture(self) -> Notice:
        """Acquire the audio input and enter Capturing with the counter at 0.

        Raises:
            IllegalTransitionError: If the session is not Idle.
            SessionBusyError: If another operation is in flight.
        """
        async with self._exclusive():
            if self._state is not CaptureState.idle:
                raise IllegalTransitionError("start capture", self._state)
            if self._contributor is None:
                return self._say(
                    NoticeLevel.warning, "NO_CONTRIBUTOR", "Select a contributor before recording."
                )
            if not self._sentences:
                return self._say(
                    NoticeLevel.warning, "NO_SENTENCES", "There are no sentences to record."
                )

            audio_input = self._input_factory()
            try:
                await audio_input.open()
            except DeviceUnavailableError as exc:
                return self._fail("starting capture", exc)

            self._input = audio_input
            self._capture_started = self._clock()
            self._elapsed = 0
            self._set_state(CaptureState.capturing)
            return self._say(
                NoticeLevel.info, "CAPTURING", f"Recording {self._ordinal_label()}..."
            )

    def feed_capture(self, data: bytes) -> Notice | None:
        """Append captured audio to the open input.

        Raises:
            IllegalTransitionError: If the session is not Capturing.
            SessionBusyError: If another operation is in flight.
        """
        self._ensure_not_busy()
        if self._state is not CaptureState.capturing or self._input is None:
            raise IllegalTransitionError("add audio", self._state)
        try:
            self._input.write(data)
        except DeviceUnavailableError as exc:
            return self._fail("buffering audio", exc)
        return None

    async def stop_capture(self) -> Notice:
        """Stop the device, wait for it, and keep the audio as pending.

        An empty capture returns to Idle with a warning; a silent one is
        kept but flagged.

        Raises:
            IllegalTransitionError: If the session is not Capturing.
        """
        async with self._exclusive():
            if self._state is not CaptureState.capturing or self._input is None:
                raise IllegalTransitionError("stop capture", self._state)

            audio_input = self._input
            self._elapsed = self.elapsed_seconds
            try:
                data = await audio_input.close()
            except DeviceUnavailableError as exc:
                audio_input.abort()
                self._input = None
                self._capture_started = None
                self._enter_idle()
                return self._fail("stopping capture", exc)
            self._input = None
            self._capture_started = None

            if not data:
                self._enter_idle()
                return self._say(
                    NoticeLevel.warning, "EMPTY_CAPTURE", "No audio was captured. Try again."
                )

            self._pending = data
            self._pending_duration = self._processor.duration_seconds(data)
            self._set_state(CaptureState.captured_unsaved)
            if self._processor.is_silent_audio(data, self._silence_threshold):
                return self._say(
                    NoticeLevel.warning,
                    "SILENT_CAPTURE",
                    "The recording sounds silent. Listen to it before saving.",
                )
            return self._say(
                NoticeLevel.info,
                "CAPTURED",
                f"Captured {self._pending_duration:.1f}s of audio. Save or discard it.",
            )

    async def capture_once(self, data: bytes) -> Notice:
        """Run start, buffer, and stop for audio recorded entirely on the client.

        If the capture cannot start, or buffering fails, the session stays
        (or returns to) Idle and the failure notice is returned.
        """
        notice = await self.start_capture()
        if self._state is not CaptureState.capturing:
            return notice
        failure = self.feed_capture(data)
        if failure is not None:
            self._abort_capture()
            self._elapsed = 0
            self._enter_idle()
            self._notice = failure
            return failure
        return await self.stop_capture()

    def discard_pending(self, confirm: bool = False) -> Notice:
        """Drop the unsaved (or in-progress) capture and return to Idle.

        Raises:
            IllegalTransitionError: If there is nothing to discard.
            SessionBusyError: If another operation is in flight.
        """
        if self._state is CaptureState.saving:
            raise IllegalTransitionError("discard", self._state)
        self._ensure_not_busy()
        if self._state not in (CaptureState.capturing, CaptureState.captured_unsaved):
            raise IllegalTransitionError("discard", self._state)
        if not confirm:
            return self._say(
                NoticeLevel.warning,
                "CONFIRM_DISCARD",
                "Discard the unsaved recording?",
                requires_confirmation=True,
            )
        self._abort_capture()
        self._elapsed = 0
        self._enter_idle()
        return self._say(NoticeLevel.info, "DISCARDED", "Recording discarded.")

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play_pending(self) -> Playback:
        """Return the unsaved capture for local playback.

        Raises:
            IllegalTransitionError: If there is no pending audio.
        """
        if self._pending is None:
            raise IllegalTransitionError("play pending audio", self._state)
        return Playback(content_type=self._content_type, data=self._pending)

    async def play_committed(self) -> Playback | None:
        """Resolve the stored audio for the current sentence.

        A sentence marked recorded whose blob is missing produces a
        ``NOT_FOUND`` warning and ``None``; the completed set is left as is.

        Raises:
            IllegalTransitionError: If the current sentence is not recorded.
        """
        async with self._exclusive():
            sentence = self.current_sentence
            if self._state is CaptureState.capturing or not self.is_recorded:
                raise IllegalTransitionError("play the stored recording", self._state)
            assert sentence is not None and self._contributor is not None

            try:
                url = await self._bounded(
                    "get_blob_url",
                    self._store.get_blob_url(self._contributor, sentence.id),
                )
            except RecordingNotFoundError:
                key = self._key(sentence.id)
                logger.warning(
                    "Session %s: %s is marked recorded but the store has no audio",
                    self.session_id,
                    key,
                )
                self._say(
                    NoticeLevel.warning,
                    "NOT_FOUND",
                    f"Sentence {self._index + 1} is marked as recorded but its audio "
                    f"({key}) is missing from the store.",
                )
                return None
            except _COLLABORATOR_ERRORS as exc:
                self._fail("loading the stored recording", exc)
                return None
            return Playback(content_type=self._content_type, url=url)

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self, confirm_replace: bool = False, advance: bool = False) -> Notice:
        """Persist the pending capture for the current sentence.

        Replacing an existing recording requires *confirm_replace*.  Steps
        run strictly in order: delete old blob, delete old metadata, write
        new blob, write new metadata.  A failed step returns the session to
        CapturedUnsaved with the audio kept so the save can be retried.

        Raises:
            IllegalTransitionError: If there is no pending audio.
            SessionBusyError: If another operation is in flight.
        """
        async with self._exclusive():
            if self._state is not CaptureState.captured_unsaved or self._pending is None:
                raise IllegalTransitionError("save", self._state)
            sentence = self.current_sentence
            contributor = self._contributor
            assert sentence is not None and contributor is not None

            replacing = sentence.id in self._completed
            if replacing and not confirm_replace:
                return self._say(
                    NoticeLevel.warning,
                    "CONFIRM_REPLACE",
                    f"Sentence {self._index + 1} is already recorded. Replace it?",
                    requires_confirmation=True,
                )

            key = self._key(sentence.id)
            self._set_state(CaptureState.saving)
            step = ""
            blob_written = False
            committed = False
            try:
                if replacing:
                    step = "deleting the old audio"
                    await self._bounded(
                        "delete_blob", self._store.delete_blob(contributor, sentence.id)
                    )
                    step = "deleting the old metadata"
                    await self._bounded(
                        "delete_metadata", self._store.delete_metadata(contributor, sentence.id)
                    )
                    self._completed.discard(sentence.id)

                step = "uploading audio"
                url = await self._bounded(
                    "put_blob",
                    self._store.put_blob(contributor, sentence.id, self._pending, self._content_type),
                )
                blob_written = True

                step = "saving metadata"
                await self._bounded(
                    "put_metadata",
                    self._store.put_metadata(contributor, sentence.id, sentence.text, url),
                )
                committed = True
            except _COLLABORATOR_ERRORS as exc:
                self._set_state(CaptureState.captured_unsaved)
                failure: VoiceCorpusError = exc
                if blob_written:
                    reason = exc.reason if isinstance(exc, MetadataWriteFailedError) else exc.detail
                    failure = MetadataWriteFailedError(key, reason, orphaned_blob=True)
                    logger.error("Session %s: orphaned blob at %s", self.session_id, key)
                return self._fail(step, failure)
            finally:
                if not committed and self._state is CaptureState.saving:
                    self._set_state(CaptureState.captured_unsaved)

            self._completed.add(sentence.id)
            self._elapsed = 0
            self._enter_idle()
            message = (
                f"Saved sentence {self._index + 1} "
                f"({len(self._completed)} of {len(self._sentences)} recorded)."
            )
            if advance:
                if self._index < len(self._sentences) - 1:
                    self._move_to(self._index + 1)
                else:
                    message += " That was the last sentence."
            logger.info("Session %s: saved %s (replace=%s)", self.session_id, key, replacing)
            return self._say(NoticeLevel.success, "SAVED", message)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _navigation_block(self) -> Notice | None:
        if self._state is CaptureState.saving:
            return self._say(
                NoticeLevel.warning,
                "SAVE_IN_PROGRESS",
                "Wait for the save to finish before moving.",
            )
        self._ensure_not_busy()
        if self._state is CaptureState.capturing:
            return self._say(
                NoticeLevel.warning,
                "CAPTURE_IN_PROGRESS",
                "Stop the recording before moving.",
            )
        if self._pending is not None:
            return self._say(
                NoticeLevel.warning,
                "SAVE_BEFORE_MOVING",
                "Save or discard the current recording before moving.",
            )
        return None

    def _move_to(self, index: int) -> None:
        self._index = index
        self._pending = None
        self._pending_duration = 0.0
        self._elapsed = 0
        self._notice = None

    def advance(self, direction: Direction) -> Notice | None:
        """Move one sentence forward or back.

        Blocked (notice, no change) while Saving, Capturing, or holding
        unsaved audio.  Moving past either end is a no-op with an
        ``AT_BOUNDARY`` notice.  Returns ``None`` after a successful move.
        """
        blocked = self._navigation_block()
        if blocked is not None:
            return blocked
        target = self._index + (1 if direction is Direction.next else -1)
        if target < 0 or target >= len(self._sentences):
            edge = "last" if direction is Direction.next else "first"
            return self._say(
                NoticeLevel.info, "AT_BOUNDARY", f"Already at the {edge} sentence."
            )
        self._move_to(target)
        return None

    def jump_to(self, ordinal: int) -> Notice | None:
        """Move to the 1-based *ordinal*, under the same rules as :meth:`advance`.

        Raises:
            OutOfRangeError: If *ordinal* is outside ``1..N``.
        """
        total = len(self._sentences)
        if ordinal < 1 or ordinal > total:
            raise OutOfRangeError(ordinal, total)
        blocked = self._navigation_block()
        if blocked is not None:
            return blocked
        self._move_to(ordinal - 1)
        return None

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the audio input, if any."""
        self._abort_capture()
