"""Tempo estimation from note-onset intervals."""

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..core import PitchFrame
from ..core.constants import (
    DEFAULT_TEMPO,
    MAX_IOI_MS,
    MAX_TEMPO,
    MIN_IOI_MS,
    MIN_TEMPO,
)
from .segments import group_into_segments

logger = logging.getLogger(__name__)


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    inter_onset_intervals: np.ndarray  # IOIs kept for the estimate, in ms
    is_default: bool = False


class TempoAnalyzer:
    """Estimate tempo from the onsets of pitch-frame segments.

    The median inter-onset interval is taken as one beat, then the BPM is
    folded by octaves into [min_bpm, max_bpm].
    """

    def __init__(
        self,
        min_ioi_ms: float = MIN_IOI_MS,
        max_ioi_ms: float = MAX_IOI_MS,
        min_bpm: float = MIN_TEMPO,
        max_bpm: float = MAX_TEMPO,
        default_bpm: float = DEFAULT_TEMPO,
    ):
        if min_bpm <= 0 or max_bpm < 2 * min_bpm:
            raise ValueError(f"Tempo range must span an octave, got {min_bpm}-{max_bpm}")
        self.min_ioi_ms = min_ioi_ms
        self.max_ioi_ms = max_ioi_ms
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.default_bpm = default_bpm

    def analyze(self, frames: Sequence[PitchFrame]) -> TempoInfo:
        """
        Perform full tempo analysis.

        Args:
            frames: Pitch frames in timestamp order

        Returns:
            TempoInfo; ``is_default`` is set when there was too little data
        """
        segments = group_into_segments(frames)
        onsets = np.array([s.start_time for s in segments], dtype=float)

        if len(segments) < 3:
            logger.debug("Tempo: %d segments, using default %.0f BPM", len(segments), self.default_bpm)
            return TempoInfo(self.default_bpm, np.array([]), is_default=True)

        iois = np.diff(onsets)
        iois = iois[(iois > self.min_ioi_ms) & (iois < self.max_ioi_ms)]

        if len(iois) == 0:
            logger.debug("Tempo: no usable onset intervals, using default")
            return TempoInfo(self.default_bpm, iois, is_default=True)

        # Upper median for even counts
        median_ioi = np.sort(iois)[len(iois) // 2]
        bpm = self._fold(60000.0 / median_ioi)

        logger.debug("Tempo: median IOI %.1fms -> %.0f BPM", median_ioi, bpm)
        return TempoInfo(float(np.floor(bpm + 0.5)), iois)

    def estimate(self, frames: Sequence[PitchFrame]) -> float:
        """Estimated tempo in BPM."""
        return self.analyze(frames).bpm

    def _fold(self, bpm: float) -> float:
        while bpm < self.min_bpm:
            bpm *= 2
        while bpm > self.max_bpm:
            bpm /= 2
        return bpm
