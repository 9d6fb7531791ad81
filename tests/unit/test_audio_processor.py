"""Tests for AudioProcessor (WAV containers, decoding, silence detection).

Validates that raw PCM bytes are wrapped in and decoded from WAV
containers, and that silence detection works for edge cases including
empty data, quiet audio, undecodable bytes, and configurable thresholds.
"""

import numpy as np
import pytest

from src.services.audio.processor import AudioProcessor


@pytest.fixture
def processor():
    """Create an AudioProcessor configured for 16 kHz, 16-bit mono audio."""
    return AudioProcessor(sample_rate=16000, sample_width=2, channels=1)


class TestIsSilent:
    """Verify silence detection logic based on RMS energy threshold."""

    def _samples(self, processor, pcm: bytes) -> np.ndarray:
        samples, _ = processor.decode(processor.pcm_to_wav_bytes(pcm))
        return samples

    def test_silence_detected(self, processor, silent_pcm_bytes):
        """Near-zero amplitude audio is classified as silent."""
        assert processor.is_silent(self._samples(processor, silent_pcm_bytes)) is True

    def test_audio_not_silent(self, processor, sample_pcm_bytes):
        assert processor.is_silent(self._samples(processor, sample_pcm_bytes)) is False

    def test_empty_array_is_silent(self, processor):
        assert processor.is_silent(np.array([], dtype=np.float32)) is True

    def test_custom_threshold(self, processor, sample_pcm_bytes):
        """A threshold above full scale flags any recording."""
        samples = self._samples(processor, sample_pcm_bytes)
        assert processor.is_silent(samples, threshold=1.0) is True


class TestWavContainer:
    """Verify WAV wrapping, decoding, and duration of captured audio."""

    def test_wraps_pcm_in_riff(self, processor, sample_pcm_bytes):
        """Wrapped data carries a RIFF/WAVE header."""
        wav = processor.pcm_to_wav_bytes(sample_pcm_bytes)
        assert wav[:4] == b"RIFF"
        assert wav[8:12] == b"WAVE"

    def test_rejects_empty_pcm(self, processor):
        with pytest.raises(ValueError):
            processor.pcm_to_wav_bytes(b"")

    def test_rejects_partial_frame_only(self, processor):
        with pytest.raises(ValueError, match="complete frame"):
            processor.pcm_to_wav_bytes(b"\x00")

    def test_frame_size(self, processor):
        assert processor.frame_size == 2
        assert processor.bytes_per_second == 32000

    def test_drops_partial_frame(self, processor, sample_pcm_bytes):
        """A trailing odd byte does not corrupt the container."""
        wav = processor.pcm_to_wav_bytes(sample_pcm_bytes + b"\x01")
        assert processor.duration_seconds(wav) == pytest.approx(1.0)

    def test_decode_round_trip(self, processor, sample_wav_bytes):
        samples, sample_rate = processor.decode(sample_wav_bytes)
        assert sample_rate == 16000
        assert samples.dtype == np.float32
        assert len(samples) == 16000

    def test_decode_garbage(self, processor):
        with pytest.raises(ValueError, match="Unreadable"):
            processor.decode(b"not audio at all")

    def test_duration(self, processor, sample_wav_bytes):
        assert processor.duration_seconds(sample_wav_bytes) == pytest.approx(1.0)

    def test_duration_of_garbage_is_zero(self, processor):
        assert processor.duration_seconds(b"garbage") == 0.0


class TestIsSilentAudio:
    """Verify silence detection on container bytes."""

    def test_silent_wav(self, processor, silent_pcm_bytes):
        wav = processor.pcm_to_wav_bytes(silent_pcm_bytes)
        assert processor.is_silent_audio(wav) is True

    def test_audible_wav(self, processor, sample_wav_bytes):
        assert processor.is_silent_audio(sample_wav_bytes) is False

    def test_undecodable_is_not_silent(self, processor):
        """Bytes that cannot be decoded are not flagged as silence."""
        assert processor.is_silent_audio(b"garbage") is False
