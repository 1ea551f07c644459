"""Audio loading and preprocessing utilities."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import librosa
import numpy as np

logger = logging.getLogger(__name__)


def to_mono(audio: np.ndarray) -> np.ndarray:
    """
    Average channels into one.

    Accepts (n_samples,), (n_channels, n_samples) as librosa returns, and
    returns a 1-D float array.
    """
    audio = np.asarray(audio, dtype=np.float64)
    if audio.ndim == 1:
        return audio
    if audio.ndim != 2:
        raise ValueError(f"Expected 1-D or 2-D audio, got shape {audio.shape}")
    return audio.mean(axis=0)


class AudioLoader:
    """Handles audio file loading and preprocessing."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".mp4"}

    def __init__(
        self,
        target_sr: Optional[int] = 44100,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the file's rate)
            normalize: Peak-normalize amplitude if True
        """
        self.target_sr = target_sr
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load an audio file as mono samples.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (mono audio array, sample rate)

        Raises:
            ValueError: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {self.SUPPORTED_FORMATS}"
            )

        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=False)
        audio = to_mono(audio)

        if self.normalize:
            audio = self._normalize(audio)

        logger.debug("Loaded %s: %d samples at %d Hz", path.name, len(audio), sr)
        return audio, int(sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if len(audio) else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    @staticmethod
    def get_duration(audio: np.ndarray, sr: int) -> float:
        """Get duration in seconds."""
        return len(audio) / sr
