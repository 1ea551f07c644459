"""Chord recognition - chroma extraction and template matching.

Implements frame-wise chord detection with:
- Hanning-windowed frames
- 12-bin chroma from single-frequency DFT sums at the 72 note frequencies of
  octaves 2-7 (no full FFT)
- Cosine-similarity matching against 84 binary chord templates
- Temporal smoothing that merges runs of identical chords
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import librosa
import numpy as np

from ..core import Chord, Note
from ..core.constants import (
    CHROMA_OCTAVES,
    DEFAULT_CHORD_FRAME_SIZE,
    DEFAULT_CHORD_HOP_SIZE,
    DEFAULT_MIN_CHORD_CONFIDENCE,
    DEFAULT_SMOOTHING_WINDOW,
)
from ..theory.notes import midi_to_frequency
from ..theory.tables import ChordTemplate, get_all_chord_templates

logger = logging.getLogger(__name__)

# Frames windowed and correlated per block, bounds memory on long inputs
_BLOCK_FRAMES = 128


@dataclass(frozen=True)
class ChordRecognizerConfig:
    """Configuration for chord recognition.

    Attributes:
        frame_size: Samples per analysis frame (default: 8192)
        hop_size: Samples between frame starts (default: 4096)
        min_confidence: Minimum template similarity to keep a frame (default: 0.5)
        smoothing_window: Accepted for compatibility, not used by smoothing (default: 3)
    """

    frame_size: int = DEFAULT_CHORD_FRAME_SIZE
    hop_size: int = DEFAULT_CHORD_HOP_SIZE
    min_confidence: float = DEFAULT_MIN_CHORD_CONFIDENCE
    smoothing_window: int = DEFAULT_SMOOTHING_WINDOW

    def __post_init__(self):
        if self.frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {self.frame_size}")
        if self.hop_size <= 0:
            raise ValueError(f"hop_size must be positive, got {self.hop_size}")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if self.smoothing_window <= 0:
            raise ValueError(f"smoothing_window must be positive, got {self.smoothing_window}")


@dataclass
class ChordDetection:
    """One smoothed chord segment. Times are in seconds."""

    root: str
    quality: str
    symbol: str
    confidence: float
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity; 0.0 when either vector has zero norm."""
    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0
    return float(np.dot(a, b) / denominator)


class ChordRecognizer:
    """Detect chords from audio (or sounding notes) by chroma template matching."""

    def __init__(
        self,
        frame_size: int = DEFAULT_CHORD_FRAME_SIZE,
        hop_size: int = DEFAULT_CHORD_HOP_SIZE,
        min_confidence: float = DEFAULT_MIN_CHORD_CONFIDENCE,
        smoothing_window: int = DEFAULT_SMOOTHING_WINDOW,
        config: Optional[ChordRecognizerConfig] = None,
    ):
        """
        Initialize ChordRecognizer.

        Args:
            frame_size: Samples per analysis frame
            hop_size: Samples between frames
            min_confidence: Minimum similarity for a frame to count
            smoothing_window: Unused, kept as a declared option
            config: Optional ChordRecognizerConfig overriding the above
        """
        self.config = config or ChordRecognizerConfig(
            frame_size=frame_size,
            hop_size=hop_size,
            min_confidence=min_confidence,
            smoothing_window=smoothing_window,
        )
        self.templates: List[ChordTemplate] = get_all_chord_templates()
        self._template_matrix = np.stack([t.template for t in self.templates])
        self._template_norms = np.linalg.norm(self._template_matrix, axis=1)

    # ------------------------------------------------------------------
    # Chroma
    # ------------------------------------------------------------------

    @staticmethod
    def _note_bins(frame_size: int, sr: int) -> Tuple[np.ndarray, np.ndarray]:
        """DFT bin and pitch class for every note of octaves 2-7 inside (0, N/2)."""
        bins, pitch_classes = [], []
        for octave in CHROMA_OCTAVES:
            for pitch_class in range(12):
                midi = (octave + 1) * 12 + pitch_class
                k = int(np.floor(midi_to_frequency(midi) * frame_size / sr + 0.5))
                if 0 < k < frame_size / 2:
                    bins.append(k)
                    pitch_classes.append(pitch_class)
        return np.array(bins, dtype=int), np.array(pitch_classes, dtype=int)

    def _chroma_basis(self, frame_size: int, sr: int):
        bins, pitch_classes = self._note_bins(frame_size, sr)
        omega = 2 * np.pi * bins[:, None] * np.arange(frame_size)[None, :] / frame_size
        fold = np.zeros((len(bins), 12))
        fold[np.arange(len(bins)), pitch_classes] = 1.0
        return np.cos(omega), np.sin(omega), fold

    @staticmethod
    def _normalize_rows(chroma: np.ndarray) -> np.ndarray:
        peaks = chroma.max(axis=1, keepdims=True)
        return np.divide(chroma, peaks, out=np.zeros_like(chroma), where=peaks > 0)

    def compute_chroma(self, frame: np.ndarray, sr: int) -> np.ndarray:
        """
        12-bin chroma of one (already windowed) frame, normalized by its max.

        Args:
            frame: Windowed audio frame
            sr: Sample rate

        Returns:
            12-element array; all zeros for a silent frame
        """
        frame = np.asarray(frame, dtype=np.float64)
        cos_basis, sin_basis, fold = self._chroma_basis(len(frame), sr)
        magnitudes = np.hypot(cos_basis @ frame, sin_basis @ frame)
        return self._normalize_rows((magnitudes @ fold)[None, :])[0]

    def chromagram(self, audio: np.ndarray, sr: int) -> np.ndarray:
        """
        Chroma for every frame of a mono buffer.

        Returns:
            Array of shape (n_frames, 12); empty when the buffer is shorter
            than one frame
        """
        if sr <= 0:
            raise ValueError(f"Sample rate must be positive, got {sr}")
        frame_size, hop_size = self.config.frame_size, self.config.hop_size
        audio = np.ascontiguousarray(audio, dtype=np.float64)
        if audio.ndim != 1:
            raise ValueError("ChordRecognizer expects mono audio")
        if len(audio) < frame_size:
            return np.zeros((0, 12))

        frames = librosa.util.frame(audio, frame_length=frame_size, hop_length=hop_size, axis=0)
        window = np.hanning(frame_size)
        cos_basis, sin_basis, fold = self._chroma_basis(frame_size, sr)

        blocks = []
        for start in range(0, len(frames), _BLOCK_FRAMES):
            windowed = frames[start:start + _BLOCK_FRAMES] * window
            magnitudes = np.hypot(windowed @ cos_basis.T, windowed @ sin_basis.T)
            blocks.append(magnitudes @ fold)

        return self._normalize_rows(np.concatenate(blocks))

    # ------------------------------------------------------------------
    # Template matching
    # ------------------------------------------------------------------

    def similarities(self, chroma: np.ndarray) -> np.ndarray:
        """Cosine similarity of one or more chroma vectors to every template."""
        chroma = np.atleast_2d(chroma)
        norms = np.linalg.norm(chroma, axis=1, keepdims=True) * self._template_norms[None, :]
        dots = chroma @ self._template_matrix.T
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    def match(self, chroma: np.ndarray) -> Tuple[ChordTemplate, float]:
        """
        Best matching template for a chroma vector.

        Ties go to the first template in bank order (C major first).
        """
        scores = self.similarities(chroma)[0]
        best = int(np.argmax(scores))
        return self.templates[best], float(scores[best])

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect(self, audio: np.ndarray, sr: int) -> List[ChordDetection]:
        """
        Detect chords across a mono buffer.

        Args:
            audio: Mono audio samples
            sr: Sample rate

        Returns:
            Time-ordered list of smoothed ChordDetection segments (seconds)
        """
        chroma = self.chromagram(audio, sr)
        if len(chroma) == 0:
            logger.debug("Chord detection: buffer shorter than one frame")
            return []

        scores = self.similarities(chroma)
        best = np.argmax(scores, axis=1)
        frame_seconds = self.config.frame_size / sr

        raw = []
        for i, template_index in enumerate(best):
            template = self.templates[template_index]
            start = i * self.config.hop_size / sr
            raw.append(ChordDetection(
                root=template.root,
                quality=template.quality,
                symbol=template.symbol,
                confidence=float(scores[i, template_index]),
                start_time=start,
                end_time=start + frame_seconds,
            ))

        smoothed = self.smooth(raw)
        logger.debug("Chord detection: %d frames -> %d segments", len(raw), len(smoothed))
        return smoothed

    def smooth(self, raw: Sequence[ChordDetection]) -> List[ChordDetection]:
        """
        Merge consecutive accepted frames with the same chord symbol.

        Frames below ``min_confidence`` are skipped. Each accepted frame is
        compared only with the last accepted segment, so same-symbol frames
        on either side of a skipped frame end up in one segment.
        """
        smoothed: List[ChordDetection] = []
        current = None

        for result in raw:
            if result.confidence < self.config.min_confidence:
                continue

            if current is not None and current.symbol == result.symbol:
                current.end_time = result.end_time
                current.confidence = max(current.confidence, result.confidence)
            else:
                if current is not None:
                    smoothed.append(current)
                current = ChordDetection(
                    root=result.root,
                    quality=result.quality,
                    symbol=result.symbol,
                    confidence=result.confidence,
                    start_time=result.start_time,
                    end_time=result.end_time,
                )

        if current is not None:
            smoothed.append(current)

        return smoothed

    def detect_from_notes(
        self,
        notes: Sequence[Note],
        window_beats: float = 1.0,
    ) -> List[Chord]:
        """
        Infer chords from symbolic notes, one window of beats at a time.

        Each window's chroma is the overlap-weighted duration of every note
        sounding in it, normalized by its max, then matched and smoothed like
        audio frames.

        Args:
            notes: Beat-positioned notes (any polyphony)
            window_beats: Window length in beats

        Returns:
            Beat-positioned Chord list
        """
        if window_beats <= 0:
            raise ValueError(f"window_beats must be positive, got {window_beats}")
        if not notes:
            return []

        end = max(n.end_beat for n in notes)
        n_windows = int(np.ceil(end / window_beats))
        chroma = np.zeros((n_windows, 12))

        for note in notes:
            first = int(note.start_beat // window_beats)
            last = min(n_windows - 1, int(np.ceil(note.end_beat / window_beats)) - 1)
            for w in range(first, last + 1):
                overlap = min(note.end_beat, (w + 1) * window_beats) - max(note.start_beat, w * window_beats)
                if overlap > 0:
                    chroma[w, note.pitch_class] += overlap

        chroma = self._normalize_rows(chroma)
        scores = self.similarities(chroma)
        best = np.argmax(scores, axis=1)

        raw = []
        for w, template_index in enumerate(best):
            template = self.templates[template_index]
            raw.append(ChordDetection(
                root=template.root,
                quality=template.quality,
                symbol=template.symbol,
                confidence=float(scores[w, template_index]),
                start_time=w * window_beats,
                end_time=(w + 1) * window_beats,
            ))

        return [
            Chord(d.root, d.quality, start_beat=d.start_time, duration=d.duration)
            for d in self.smooth(raw)
        ]


def detections_to_chords(detections: Sequence[ChordDetection], tempo: float) -> List[Chord]:
    """
    Convert second-based detections to beat-positioned chords.

    Chord tones come from the theory tables via Chord.notes.
    """
    if tempo <= 0:
        raise ValueError(f"Tempo must be positive, got {tempo}")
    seconds_per_beat = 60.0 / tempo
    return [
        Chord(
            root=d.root,
            quality=d.quality,
            start_beat=d.start_time / seconds_per_beat,
            duration=d.duration / seconds_per_beat,
        )
        for d in detections
    ]
