"""
Audio module - Audio processing and capture inputs.
"""

from .processor import AudioProcessor
from .recorder import AudioInput, BufferedAudioInput

__all__ = ["AudioProcessor", "AudioInput", "BufferedAudioInput"]
