"""Key detection - Identify the tonal center of a piece.

Implements Krumhansl-Schmuckler key finding:
- Clarity-weighted pitch-class histogram from pitch frames
- Duration-weighted histogram from symbolic notes
- Pearson correlation against the 24 rotated major/minor profiles
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..core import Key, Note, PitchFrame, PITCH_NAMES
from ..theory.tables import MAJOR_KEY_PROFILE, MINOR_KEY_PROFILE, rotate_array

logger = logging.getLogger(__name__)


@dataclass
class KeyCandidate:
    """A candidate key with its score."""
    key: Key
    correlation: float

    @property
    def name(self) -> str:
        return self.key.label


@dataclass
class KeyInfo:
    """Container for key detection results."""

    key: Key
    confidence: float  # correlation of the best key; 0.0 for an empty histogram
    pitch_class_distribution: np.ndarray = None  # 12-element array
    correlations: List[KeyCandidate] = field(default_factory=list)  # all 24, best first


def pearson_correlation(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation; 0.0 when either input has zero variance."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = len(x)
    numerator = n * np.dot(x, y) - x.sum() * y.sum()
    denominator_sq = (n * np.dot(x, x) - x.sum() ** 2) * (n * np.dot(y, y) - y.sum() ** 2)
    if denominator_sq <= 1e-12:
        return 0.0
    return float(numerator / np.sqrt(denominator_sq))


class KeyDetector:
    """Detect musical key from pitch frames or notes (Krumhansl-Schmuckler)."""

    def __init__(
        self,
        major_profile: Optional[Sequence[float]] = None,
        minor_profile: Optional[Sequence[float]] = None,
    ):
        """
        Initialize KeyDetector.

        Args:
            major_profile: 12 weights with the tonic at index 0 (default: Krumhansl major)
            minor_profile: 12 weights with the tonic at index 0 (default: Krumhansl minor)
        """
        self.major_profile = np.asarray(
            MAJOR_KEY_PROFILE if major_profile is None else major_profile, dtype=float
        )
        self.minor_profile = np.asarray(
            MINOR_KEY_PROFILE if minor_profile is None else minor_profile, dtype=float
        )
        if self.major_profile.shape != (12,) or self.minor_profile.shape != (12,):
            raise ValueError("Key profiles must have 12 elements")

    @staticmethod
    def build_histogram(frames: Sequence[PitchFrame]) -> np.ndarray:
        """
        Clarity-weighted pitch-class histogram, normalized to sum to 1.

        Silent frames are ignored; all zeros when nothing is voiced.
        """
        histogram = np.zeros(12)
        for frame in frames:
            if frame.note is not None:
                histogram[PITCH_NAMES.index(frame.note)] += frame.clarity

        total = histogram.sum()
        if total > 0:
            histogram /= total
        return histogram

    @staticmethod
    def build_note_histogram(notes: Sequence[Note]) -> np.ndarray:
        """Duration-weighted pitch-class histogram from symbolic notes."""
        histogram = np.zeros(12)
        for note in notes:
            histogram[note.pitch_class] += note.duration

        total = histogram.sum()
        if total > 0:
            histogram /= total
        return histogram

    def candidates(self, histogram: np.ndarray) -> List[KeyCandidate]:
        """
        All 24 keys with their correlations, best first.

        Generation order is tonics C..B, major before minor; the sort is
        stable so that order breaks ties.
        """
        histogram = np.asarray(histogram, dtype=float)
        if histogram.shape != (12,):
            raise ValueError(f"Histogram must have 12 bins, got shape {histogram.shape}")

        candidates = []
        for i, tonic in enumerate(PITCH_NAMES):
            major_corr = pearson_correlation(histogram, rotate_array(self.major_profile, i))
            candidates.append(KeyCandidate(Key(tonic, "major"), major_corr))

            minor_corr = pearson_correlation(histogram, rotate_array(self.minor_profile, i))
            candidates.append(KeyCandidate(Key(tonic, "minor"), minor_corr))

        candidates.sort(key=lambda c: c.correlation, reverse=True)
        return candidates

    def detect(self, histogram: np.ndarray) -> KeyInfo:
        """
        Detect the key from a pitch-class histogram.

        Args:
            histogram: 12-element pitch-class distribution

        Returns:
            KeyInfo with the best key, its correlation as confidence, and
            every candidate
        """
        candidates = self.candidates(histogram)
        best = candidates[0]
        logger.debug("Key: %s (r=%.3f)", best.key.label, best.correlation)
        return KeyInfo(
            key=best.key,
            confidence=best.correlation,
            pitch_class_distribution=np.asarray(histogram, dtype=float),
            correlations=candidates,
        )

    def detect_from_frames(self, frames: Sequence[PitchFrame]) -> KeyInfo:
        """Detect key from pitch frames."""
        return self.detect(self.build_histogram(frames))

    def detect_from_notes(self, notes: Sequence[Note]) -> KeyInfo:
        """Detect key from notes, weighting each by its duration."""
        return self.detect(self.build_note_histogram(notes))
