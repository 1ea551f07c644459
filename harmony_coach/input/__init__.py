"""Input layer - audio files and symbolic scores."""

from .loader import AudioLoader, to_mono
from .midi import MidiScoreReader, ParsedScore

__all__ = [
    "AudioLoader",
    "to_mono",
    "MidiScoreReader",
    "ParsedScore",
]
