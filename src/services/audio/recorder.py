"""Audio inputs for recording sessions.

An ``AudioInput`` is acquired when a capture starts, receives the audio
the browser streams while capturing, and is finalized into one audio blob
when the capture stops.  Acquisition and finalization are awaited so the
session only changes state once the device has answered.
"""

import logging
from abc import ABC, abstractmethod

from src.core.exceptions import DeviceUnavailableError
from src.services.audio.processor import AudioProcessor

logger = logging.getLogger(__name__)


class AudioInput(ABC):
    """Abstract capture device held by one session from start to stop."""

    @abstractmethod
    async def open(self) -> None:
        """Acquire the device.

        Raises:
            DeviceUnavailableError: If the device is absent or access is denied.
        """

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Append captured audio."""

    @abstractmethod
    async def close(self) -> bytes:
        """Stop the device and return the finalized audio blob."""

    @abstractmethod
    def abort(self) -> None:
        """Release the device and drop anything captured."""

    @property
    @abstractmethod
    def buffered_duration(self) -> float:
        """Seconds of audio captured so far."""


class BufferedAudioInput(AudioInput):
    """Accumulates audio pushed by the client and finalizes it as WAV.

    Clients may push either a complete container (data starting with a
    ``RIFF`` header is passed through untouched) or raw 16-bit PCM chunks,
    which are wrapped in a WAV header on close.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
        max_bytes: int | None = None,
    ) -> None:
        self._processor = AudioProcessor(sample_rate, sample_width, channels)
        self._max_bytes = max_bytes
        self._buffer = bytearray()
        self._open = False

    @property
    def buffered_duration(self) -> float:
        """Duration of currently buffered PCM audio in seconds."""
        return len(self._buffer) / self._processor.bytes_per_second

    async def open(self) -> None:
        if self._open:
            raise DeviceUnavailableError("Audio input is already in use")
        self._buffer.clear()
        self._open = True

    def write(self, data: bytes) -> None:
        if not self._open:
            raise DeviceUnavailableError("Audio input is not open")
        if self._max_bytes is not None and len(self._buffer) + len(data) > self._max_bytes:
            raise DeviceUnavailableError(
                f"Capture exceeds the {self._max_bytes} byte limit"
            )
        self._buffer.extend(data)

    async def close(self) -> bytes:
        if not self._open:
            raise DeviceUnavailableError("Audio input is not open")
        self._open = False
        data = bytes(self._buffer)
        self._buffer.clear()
        if not data:
            return b""
        if data.startswith(b"RIFF"):
            return data
        if len(data) < self._processor.frame_size:
            logger.debug("Dropping capture shorter than one frame (%d bytes)", len(data))
            return b""
        return self._processor.pcm_to_wav_bytes(data)

    def abort(self) -> None:
        if self._open:
            logger.debug("Aborting capture with %d buffered bytes", len(self._buffer))
        self._open = False
        self._buffer.clear()
