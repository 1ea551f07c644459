"""Melody extraction - Turn pitch frames (or polyphonic notes) into a melody line."""

import logging
from collections import defaultdict
from typing import List, Sequence

import numpy as np

from ..analysis.segments import NoteSegment, group_into_segments
from ..core import MelodyNote, Note, PitchFrame
from ..core.constants import DEFAULT_MIN_NOTE_MS, DEFAULT_TEMPO
from ..theory.notes import note_to_midi

logger = logging.getLogger(__name__)


class MelodyExtractor:
    """Extract a monophonic melody from pitch frames.

    Consecutive same-note frames become one note; segments shorter than
    ``min_duration_ms`` are treated as artifacts and dropped.
    """

    def __init__(self, min_duration_ms: float = DEFAULT_MIN_NOTE_MS):
        """
        Initialize MelodyExtractor.

        Args:
            min_duration_ms: Minimum segment length to keep (milliseconds)
        """
        if min_duration_ms < 0:
            raise ValueError(f"min_duration_ms must be >= 0, got {min_duration_ms}")
        self.min_duration_ms = min_duration_ms

    def segments(self, frames: Sequence[PitchFrame]) -> List[NoteSegment]:
        """Segments long enough to count as notes."""
        return [
            seg for seg in group_into_segments(frames)
            if seg.duration_ms >= self.min_duration_ms
        ]

    def extract(self, frames: Sequence[PitchFrame], tempo: float = DEFAULT_TEMPO) -> List[MelodyNote]:
        """
        Extract melody notes from pitch frames.

        Args:
            frames: Pitch frames in timestamp order
            tempo: BPM used to convert milliseconds to beats

        Returns:
            List of MelodyNote with confidence = average segment clarity
        """
        if tempo <= 0:
            raise ValueError(f"Tempo must be positive, got {tempo}")

        ms_per_beat = 60000.0 / tempo
        melody = []
        for seg in self.segments(frames):
            midi = note_to_midi(seg.note, seg.octave)
            melody.append(MelodyNote(
                name=seg.note,
                octave=seg.octave,
                midi_number=midi,
                duration=seg.duration_ms / ms_per_beat,
                start_beat=seg.start_time / ms_per_beat,
                confidence=seg.avg_clarity,
                measured_frequency=seg.avg_frequency,
            ))

        logger.debug("Melody: %d notes at %.0f BPM", len(melody), tempo)
        return melody


def extract_top_line(notes: Sequence[Note], resolution: float = 0.125) -> List[Note]:
    """
    Skyline melody: the highest note starting at each grid position.

    Notes are grouped by start beat rounded to ``resolution`` (default a
    32nd note) and the highest pitch of each group is kept.
    """
    if resolution <= 0:
        raise ValueError(f"resolution must be positive, got {resolution}")

    groups = defaultdict(list)
    for note in notes:
        slot = int(np.floor(note.start_beat / resolution + 0.5))
        groups[slot].append(note)

    melody = [max(group, key=lambda n: n.midi_number) for group in groups.values()]
    return sorted(melody, key=lambda n: n.start_beat)
