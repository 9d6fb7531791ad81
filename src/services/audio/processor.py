"""Audio processing utilities for captured recordings.

Wraps raw PCM bytes into WAV containers, decodes container bytes with
``soundfile`` and provides silence detection.
"""

import io
import wave

import numpy as np
import soundfile as sf


class AudioProcessor:
    """Handles PCM/WAV audio data conversion and analysis.

    Provides utilities for wrapping raw PCM in a WAV container, decoding
    containers to numpy samples, and detecting silence via RMS energy.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        """Bytes in one PCM frame (one sample for every channel)."""
        return self.sample_width * self.channels

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.frame_size

    def pcm_to_wav_bytes(self, pcm_data: bytes) -> bytes:
        """Wrap raw PCM bytes in an in-memory WAV container.

        A trailing partial frame is dropped.

        Raises:
            ValueError: If pcm_data holds no complete frame.
        """
        if len(pcm_data) < self.frame_size:
            raise ValueError("Cannot wrap PCM data without a complete frame in WAV")
        usable = len(pcm_data) - (len(pcm_data) % self.frame_size)
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data[:usable])
        return buf.getvalue()

    def decode(self, audio_bytes: bytes) -> tuple[np.ndarray, int]:
        """Decode container bytes (WAV, FLAC, OGG) to mono float32 samples.

        Returns:
            ``(samples, sample_rate)``.

        Raises:
            ValueError: If the bytes cannot be decoded.
        """
        try:
            data, sample_rate = sf.read(io.BytesIO(audio_bytes), dtype="float32")
        except (sf.LibsndfileError, RuntimeError, TypeError) as exc:
            raise ValueError(f"Unreadable audio data: {exc}") from exc
        # Convert to mono if stereo
        if data.ndim > 1:
            data = data.mean(axis=1)
        return data, int(sample_rate)

    def duration_seconds(self, audio_bytes: bytes) -> float:
        """Return the duration of container audio bytes, ``0.0`` if undecodable."""
        try:
            info = sf.info(io.BytesIO(audio_bytes))
        except (sf.LibsndfileError, RuntimeError, TypeError):
            return 0.0
        return float(info.duration)

    def is_silent(self, audio: np.ndarray, threshold: float = 0.01) -> bool:
        """Check if an audio segment is silence based on RMS energy.

        Args:
            audio: Float32 numpy array of audio samples.
            threshold: RMS energy below this value is considered silence.

        Returns:
            True if the audio is silence.
        """
        if len(audio) == 0:
            return True
        # RMS (Root Mean Square) measures signal energy; low RMS = silence
        rms = np.sqrt(np.mean(audio**2))
        return float(rms) < threshold

    def is_silent_audio(self, audio_bytes: bytes, threshold: float = 0.01) -> bool:
        """Decode container bytes and check them for silence.

        Undecodable data is not reported as silent.
        """
        try:
            samples, _ = self.decode(audio_bytes)
        except ValueError:
            return False
        return self.is_silent(samples, threshold)
