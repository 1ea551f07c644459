"""Song analysis pipeline.

Runs the layers in order and assembles one AnalysisResult:

1. Pitch detection (McLeod) over the mono buffer
2. Tempo estimate from pitch-segment onsets
3. Key detection (Krumhansl-Schmuckler) from the clarity-weighted histogram
4. Melody extraction and quantization
5. Chord recognition from the audio (chroma templates), converted to beats
6. Roman-numeral labels relative to the key
7. Chord-tone assignment for every melody note
8. Harmony lines (soprano, alto, bass)

``analyze_notes`` runs steps 3-8 for symbolic input such as a parsed MIDI
file, inferring chords from the sounding notes instead of audio.
"""

import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .analysis import PitchDetector, TempoAnalyzer
from .core import AnalysisResult, ChordWithFunction, MelodyNote, Note
from .core.constants import (
    DEFAULT_CHORD_FRAME_SIZE,
    DEFAULT_CHORD_HOP_SIZE,
    DEFAULT_CLARITY_THRESHOLD,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MIN_CHORD_CONFIDENCE,
    DEFAULT_MIN_FREQUENCY,
    DEFAULT_MIN_NOTE_MS,
    DEFAULT_SUBDIVISION,
    DEFAULT_TEMPO,
    DEFAULT_TIME_SIGNATURE,
)
from .inference import (
    ChordRecognizer,
    HarmonyGenerator,
    KeyDetector,
    MelodyExtractor,
    extract_top_line,
    detections_to_chords,
    label_chords,
)
from .inference.harmony import HARMONY_MODES
from .input import ParsedScore, to_mono
from .processing import Quantizer

logger = logging.getLogger(__name__)

CHORD_TONE_BY_INDEX = ("root", "third", "fifth", "seventh")


@dataclass(frozen=True)
class AnalysisConfig:
    """Every tunable of the analysis pipeline.

    Attributes:
        title: Song title stored on the result (default: "Untitled")
        clarity_threshold: Minimum pitch clarity (default: 0.8)
        min_frequency: Lowest accepted pitch in Hz (default: 80)
        max_frequency: Highest accepted pitch in Hz (default: 1200)
        chord_frame_size: Chord analysis frame in samples (default: 8192)
        chord_hop_size: Chord analysis hop in samples (default: 4096)
        min_chord_confidence: Minimum template similarity (default: 0.5)
        min_note_ms: Shortest melody note kept (default: 80)
        subdivision: Quantization grid per beat (default: 4)
        harmony_mode: "choir" or "classical" (default: "choir")
        generate_harmony: Generate the three harmony lines (default: True)
        chord_window_beats: Chord window for symbolic input (default: 1 beat)
    """

    title: str = "Untitled"
    clarity_threshold: float = DEFAULT_CLARITY_THRESHOLD
    min_frequency: float = DEFAULT_MIN_FREQUENCY
    max_frequency: float = DEFAULT_MAX_FREQUENCY
    chord_frame_size: int = DEFAULT_CHORD_FRAME_SIZE
    chord_hop_size: int = DEFAULT_CHORD_HOP_SIZE
    min_chord_confidence: float = DEFAULT_MIN_CHORD_CONFIDENCE
    min_note_ms: float = DEFAULT_MIN_NOTE_MS
    subdivision: int = DEFAULT_SUBDIVISION
    harmony_mode: str = "choir"
    generate_harmony: bool = True
    chord_window_beats: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.clarity_threshold <= 1.0:
            raise ValueError(f"clarity_threshold must be in [0, 1], got {self.clarity_threshold}")
        if self.min_frequency <= 0 or self.max_frequency <= self.min_frequency:
            raise ValueError(
                f"Invalid frequency range: {self.min_frequency}-{self.max_frequency} Hz"
            )
        if self.chord_frame_size <= 0 or self.chord_hop_size <= 0:
            raise ValueError("Chord frame and hop sizes must be positive")
        if not 0.0 <= self.min_chord_confidence <= 1.0:
            raise ValueError(
                f"min_chord_confidence must be in [0, 1], got {self.min_chord_confidence}"
            )
        if self.min_note_ms < 0:
            raise ValueError(f"min_note_ms must be >= 0, got {self.min_note_ms}")
        if self.subdivision <= 0:
            raise ValueError(f"subdivision must be positive, got {self.subdivision}")
        if self.harmony_mode not in HARMONY_MODES:
            raise ValueError(f"Unknown harmony mode: {self.harmony_mode!r}")
        if self.chord_window_beats <= 0:
            raise ValueError(f"chord_window_beats must be positive, got {self.chord_window_beats}")


def assign_chord_tones(
    melody: Sequence[MelodyNote],
    chords: Sequence[ChordWithFunction],
) -> List[MelodyNote]:
    """
    Set each melody note's chord tone from the chord active at its start.

    The active chord is the first one with start <= beat < start + duration.
    Notes with no active chord keep ``chord_tone`` unset; otherwise the
    note's position in the chord's note list decides root/third/fifth/
    seventh, and anything else is non-chord.
    """
    assigned = []
    for note in melody:
        chord = next((c for c in chords if c.contains_beat(note.start_beat)), None)
        if chord is None:
            assigned.append(note)
            continue

        chord_notes = chord.notes
        index = chord_notes.index(note.name) if note.name in chord_notes else -1
        tone = CHORD_TONE_BY_INDEX[index] if 0 <= index < len(CHORD_TONE_BY_INDEX) else "non-chord"
        assigned.append(replace(note, chord_tone=tone))
    return assigned


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SongAnalyzer:
    """Run the full harmony-coach pipeline on audio or symbolic notes."""

    def __init__(self, config: Optional[AnalysisConfig] = None, **overrides):
        """
        Initialize SongAnalyzer.

        Args:
            config: AnalysisConfig (default: all defaults)
            **overrides: Individual AnalysisConfig fields, applied on top
        """
        config = config or AnalysisConfig()
        if overrides:
            config = replace(config, **overrides)
        self.config = config

        self.pitch_detector = PitchDetector(
            min_frequency=config.min_frequency,
            max_frequency=config.max_frequency,
            clarity_threshold=config.clarity_threshold,
        )
        self.tempo_analyzer = TempoAnalyzer()
        self.key_detector = KeyDetector()
        self.melody_extractor = MelodyExtractor(min_duration_ms=config.min_note_ms)
        self.quantizer = Quantizer(subdivision=config.subdivision)
        self.chord_recognizer = ChordRecognizer(
            frame_size=config.chord_frame_size,
            hop_size=config.chord_hop_size,
            min_confidence=config.min_chord_confidence,
        )
        self.harmony_generator = HarmonyGenerator()

    def analyze_audio(
        self,
        samples: np.ndarray,
        sr: int,
        title: Optional[str] = None,
    ) -> AnalysisResult:
        """
        Analyze an in-memory audio buffer.

        Args:
            samples: Mono or (channels, samples) audio
            sr: Sample rate
            title: Song title (default: config title)

        Returns:
            AnalysisResult with source_type "audio"
        """
        audio = to_mono(samples)
        start = time.perf_counter()

        pitch_frames = self.pitch_detector.detect(audio, sr)
        tempo = self.tempo_analyzer.estimate(pitch_frames)
        key_info = self.key_detector.detect_from_frames(pitch_frames)

        melody = self.quantizer.quantize(self.melody_extractor.extract(pitch_frames, tempo))

        detections = self.chord_recognizer.detect(audio, sr)
        chords = label_chords(detections_to_chords(detections, tempo), key_info.key)

        melody = assign_chord_tones(melody, chords)
        harmony_lines = self._harmonize(melody, chords)

        logger.info(
            "Analyzed %.1fs of audio in %.2fs: %s, %.0f BPM, %d notes, %d chords",
            len(audio) / sr, time.perf_counter() - start,
            key_info.key.label, tempo, len(melody), len(chords),
        )
        return AnalysisResult(
            id=str(uuid.uuid4()),
            song_title=title or self.config.title,
            source_type="audio",
            key=key_info.key,
            tempo=tempo,
            created_at=_now_iso(),
            time_signature=DEFAULT_TIME_SIGNATURE,
            melody=melody,
            chords=chords,
            harmony_lines=harmony_lines,
            key_confidence=key_info.confidence,
        )

    def analyze_notes(
        self,
        notes: Sequence[Note],
        tempo: float = DEFAULT_TEMPO,
        time_signature: Tuple[int, int] = DEFAULT_TIME_SIGNATURE,
        title: Optional[str] = None,
        source_type: str = "midi",
    ) -> AnalysisResult:
        """
        Analyze beat-positioned notes from a symbolic score.

        The melody is the top line of the notes; chords are matched per
        ``chord_window_beats`` window over every sounding note.

        Args:
            notes: Notes in beats (any polyphony)
            tempo: Tempo in BPM
            time_signature: (numerator, denominator)
            title: Song title (default: config title)
            source_type: "midi", "musicxml" or "sheet"

        Returns:
            AnalysisResult
        """
        if tempo <= 0:
            raise ValueError(f"Tempo must be positive, got {tempo}")

        key_info = self.key_detector.detect_from_notes(notes)

        melody = [
            MelodyNote(
                name=n.name,
                octave=n.octave,
                midi_number=n.midi_number,
                duration=n.duration,
                start_beat=n.start_beat,
            )
            for n in extract_top_line(notes)
        ]

        chords = self.chord_recognizer.detect_from_notes(
            notes, window_beats=self.config.chord_window_beats
        )
        chords = label_chords(chords, key_info.key)

        melody = assign_chord_tones(melody, chords)
        harmony_lines = self._harmonize(melody, chords)

        logger.info(
            "Analyzed %d notes: %s, %.0f BPM, %d melody notes, %d chords",
            len(notes), key_info.key.label, tempo, len(melody), len(chords),
        )
        return AnalysisResult(
            id=str(uuid.uuid4()),
            song_title=title or self.config.title,
            source_type=source_type,
            key=key_info.key,
            tempo=tempo,
            created_at=_now_iso(),
            time_signature=time_signature,
            melody=melody,
            chords=chords,
            harmony_lines=harmony_lines,
            key_confidence=key_info.confidence,
        )

    def analyze_score(self, score: ParsedScore, title: Optional[str] = None) -> AnalysisResult:
        """Analyze a parsed MIDI score."""
        return self.analyze_notes(
            score.notes,
            tempo=score.tempo,
            time_signature=score.time_signature,
            title=title,
            source_type="midi",
        )

    def _harmonize(self, melody, chords):
        if not self.config.generate_harmony:
            return []
        return self.harmony_generator.generate_lines(melody, chords, mode=self.config.harmony_mode)
