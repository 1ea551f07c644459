"""Pitch detection - monophonic fundamental frequency tracking.

Uses the McLeod Pitch Method: a normalized square difference function (an
autocorrelation variant) whose peak height doubles as a clarity score in
[0, 1]. Frames are cut with librosa and the NSDF is computed with numpy FFTs.
"""

import logging
import time
import warnings
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import librosa
import numpy as np

from ..core import PitchFrame
from ..core.constants import (
    DEFAULT_CLARITY_THRESHOLD,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MIN_FREQUENCY,
    DEFAULT_REALTIME_CLARITY_THRESHOLD,
    PITCH_FRAME_SECONDS,
    PITCH_HOP_SECONDS,
)
from ..theory.notes import frequency_to_note

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchDetectionConfig:
    """Acceptance rules for detected pitches.

    Attributes:
        min_frequency: Lowest accepted frequency in Hz (default: 80)
        max_frequency: Highest accepted frequency in Hz (default: 1200)
        clarity_threshold: Minimum clarity for a voiced frame (default: 0.8)
    """

    min_frequency: float = DEFAULT_MIN_FREQUENCY
    max_frequency: float = DEFAULT_MAX_FREQUENCY
    clarity_threshold: float = DEFAULT_CLARITY_THRESHOLD

    def __post_init__(self):
        if self.min_frequency <= 0 or self.max_frequency <= self.min_frequency:
            raise ValueError(
                f"Invalid frequency range: {self.min_frequency}-{self.max_frequency} Hz"
            )
        if not 0.0 <= self.clarity_threshold <= 1.0:
            raise ValueError(f"clarity_threshold must be in [0, 1], got {self.clarity_threshold}")

    def accepts(self, frequency: float, clarity: float) -> bool:
        return (
            clarity >= self.clarity_threshold
            and self.min_frequency <= frequency <= self.max_frequency
        )


class McLeodEstimator:
    """McLeod Pitch Method estimator for fixed-size frames.

    Keeps a scratch NSDF buffer sized to the frame, so one instance should be
    reused across frames of the same size.
    """

    # A key maximum is chosen when it reaches this fraction of the highest one
    PEAK_THRESHOLD = 0.9

    def __init__(self, frame_size: int):
        if frame_size <= 1:
            raise ValueError(f"frame_size must be > 1, got {frame_size}")
        self.frame_size = frame_size
        self._fft_size = int(2 ** np.ceil(np.log2(2 * frame_size)))
        self.nsdf = np.zeros(frame_size)

    def _compute_nsdf(self, frame: np.ndarray) -> np.ndarray:
        n = self.frame_size
        spectrum = np.fft.rfft(frame, self._fft_size)
        acf = np.fft.irfft(spectrum * np.conj(spectrum), self._fft_size)[:n]

        # m(tau) = sum of x[j]^2 + x[j+tau]^2 over the overlap
        squares = frame * frame
        cumulative = np.concatenate(([0.0], np.cumsum(squares)))
        total = cumulative[-1]
        taus = np.arange(n)
        m = (total - cumulative[taus]) + cumulative[n - taus]

        with np.errstate(divide="ignore", invalid="ignore"):
            nsdf = np.where(m > 0, 2.0 * acf / m, 0.0)
        self.nsdf = np.clip(nsdf, -1.0, 1.0)
        return self.nsdf

    @staticmethod
    def _key_maxima(nsdf: np.ndarray) -> List[int]:
        """Index of the highest value in each positive lobe.

        The lobe around tau=0 is skipped, as is a lobe cut off by the end of
        the frame.
        """
        positive = nsdf > 0
        rises = np.flatnonzero(~positive[:-1] & positive[1:]) + 1
        falls = np.flatnonzero(positive[:-1] & ~positive[1:]) + 1

        maxima = []
        for start in rises:
            ends = falls[falls > start]
            if len(ends) == 0:
                break
            end = ends[0]
            maxima.append(int(start + np.argmax(nsdf[start:end])))
        return maxima

    @staticmethod
    def _refine(index: int, nsdf: np.ndarray) -> Tuple[float, float]:
        """Parabolic interpolation around a peak -> (lag, peak height)."""
        if index <= 0 or index >= len(nsdf) - 1:
            return float(index), float(nsdf[index])
        left, center, right = nsdf[index - 1], nsdf[index], nsdf[index + 1]
        denom = left - 2 * center + right
        if denom == 0:
            return float(index), float(center)
        shift = 0.5 * (left - right) / denom
        height = center - 0.25 * (left - right) * shift
        return index + shift, float(height)

    def find_pitch(self, frame: np.ndarray, sr: int) -> Tuple[float, float]:
        """
        Estimate the fundamental frequency of one frame.

        Returns:
            Tuple of (frequency in Hz, clarity 0-1). (0.0, 0.0) when no
            periodicity is found.
        """
        frame = np.asarray(frame, dtype=np.float64)
        if len(frame) != self.frame_size:
            raise ValueError(
                f"Expected frame of {self.frame_size} samples, got {len(frame)}"
            )

        nsdf = self._compute_nsdf(frame)
        maxima = self._key_maxima(nsdf)
        if not maxima:
            return 0.0, 0.0

        highest = max(nsdf[i] for i in maxima)
        chosen = next(i for i in maxima if nsdf[i] >= self.PEAK_THRESHOLD * highest)
        lag, clarity = self._refine(chosen, nsdf)
        if lag <= 0:
            return 0.0, 0.0
        return sr / lag, float(min(max(clarity, 0.0), 1.0))


def make_pitch_frame(
    frequency: float,
    clarity: float,
    timestamp: float,
    config: PitchDetectionConfig,
) -> PitchFrame:
    """Apply the acceptance rules to a raw estimate."""
    if not config.accepts(frequency, clarity):
        return PitchFrame.silent(clarity, timestamp)

    name, octave, cents_off = frequency_to_note(frequency)
    return PitchFrame(
        frequency=float(frequency),
        clarity=float(clarity),
        note=name,
        octave=octave,
        cents_off=cents_off,
        timestamp=float(timestamp),
    )


def pitch_frame_size(sr: int) -> int:
    """~30ms rounded up to a power of two (1024 at 22.05kHz, 2048 at 44.1kHz)."""
    return int(2 ** np.ceil(np.log2(sr * PITCH_FRAME_SECONDS)))


class PitchDetector:
    """Offline pitch tracking over a whole mono buffer."""

    def __init__(
        self,
        min_frequency: float = DEFAULT_MIN_FREQUENCY,
        max_frequency: float = DEFAULT_MAX_FREQUENCY,
        clarity_threshold: float = DEFAULT_CLARITY_THRESHOLD,
        config: Optional[PitchDetectionConfig] = None,
    ):
        """
        Initialize PitchDetector.

        Args:
            min_frequency: Lowest accepted frequency (Hz)
            max_frequency: Highest accepted frequency (Hz)
            clarity_threshold: Minimum clarity to accept a pitch (0-1)
            config: Optional PitchDetectionConfig overriding the above
        """
        self.config = config or PitchDetectionConfig(
            min_frequency=min_frequency,
            max_frequency=max_frequency,
            clarity_threshold=clarity_threshold,
        )

    def detect_frame(self, frame: np.ndarray, sr: int, timestamp: float = 0.0) -> PitchFrame:
        """Detect the pitch of a single frame of any length."""
        estimator = McLeodEstimator(len(frame))
        frequency, clarity = estimator.find_pitch(frame, sr)
        return make_pitch_frame(frequency, clarity, timestamp, self.config)

    def detect(self, audio: np.ndarray, sr: int) -> List[PitchFrame]:
        """
        Detect pitches across a mono buffer.

        Every frame yields a PitchFrame; rejected frames are silence markers
        (frequency 0, note None) at their timestamp.

        Args:
            audio: Mono audio samples
            sr: Sample rate

        Returns:
            List of PitchFrame in timestamp order
        """
        if sr <= 0:
            raise ValueError(f"Sample rate must be positive, got {sr}")

        audio = np.ascontiguousarray(audio, dtype=np.float64)
        frame_size = pitch_frame_size(sr)
        hop_size = max(1, int(sr * PITCH_HOP_SECONDS))

        if audio.ndim != 1:
            raise ValueError("PitchDetector expects mono audio")
        if len(audio) < frame_size:
            warnings.warn(
                f"Audio shorter than one pitch frame ({len(audio)} < {frame_size} samples)"
            )
            return []

        frames = librosa.util.frame(audio, frame_length=frame_size, hop_length=hop_size, axis=0)
        estimator = McLeodEstimator(frame_size)

        pitch_frames = []
        for i, frame in enumerate(frames):
            frequency, clarity = estimator.find_pitch(frame, sr)
            timestamp = (i * hop_size / sr) * 1000.0
            pitch_frames.append(make_pitch_frame(frequency, clarity, timestamp, self.config))

        voiced = sum(1 for f in pitch_frames if f.is_voiced)
        logger.debug(
            "Pitch detection: %d frames (%d voiced), frame=%d hop=%d",
            len(pitch_frames), voiced, frame_size, hop_size,
        )
        return pitch_frames


class RealtimePitchDetector:
    """Pull-based pitch detection over a live time-domain buffer.

    ``source`` is any callable that fills the given array with the latest
    samples (e.g. an analyser or a microphone ring buffer). Each call reads
    the source once and returns a fresh PitchFrame; the only state kept is
    the estimator scratch buffer and the last frame. Timestamps are ms since
    the detector was created.
    """

    def __init__(
        self,
        source: Callable[[np.ndarray], None],
        buffer_size: int,
        sr: int,
        min_frequency: float = DEFAULT_MIN_FREQUENCY,
        max_frequency: float = DEFAULT_MAX_FREQUENCY,
        clarity_threshold: float = DEFAULT_REALTIME_CLARITY_THRESHOLD,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if sr <= 0:
            raise ValueError(f"Sample rate must be positive, got {sr}")
        self.source = source
        self.sr = sr
        self.config = PitchDetectionConfig(
            min_frequency=min_frequency,
            max_frequency=max_frequency,
            clarity_threshold=clarity_threshold,
        )
        self.clock = clock
        self._start_time = clock()
        self._buffer = np.zeros(buffer_size)
        self._estimator = McLeodEstimator(buffer_size)
        self.last_frame: Optional[PitchFrame] = None

    def __call__(self) -> PitchFrame:
        """Read the source and return the current pitch."""
        self.source(self._buffer)
        frequency, clarity = self._estimator.find_pitch(self._buffer, self.sr)
        timestamp = (self.clock() - self._start_time) * 1000.0
        self.last_frame = make_pitch_frame(frequency, clarity, timestamp, self.config)
        return self.last_frame
