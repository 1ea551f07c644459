"""Harmony generation - Singable harmony lines for a melody over a chord progression.

For each melody note, in order:
1. Find the chord sounding at the note's start beat
2. Enumerate that chord's tones inside the target voice range
3. Score each candidate (consonance with the melody, preferred side,
   voice leading from the previous harmony note, parallel 5ths/8ves in
   classical mode, distance from the middle of the range)
4. Keep the best and carry it forward as the previous harmony note

The line is a left-to-right fold with no look-ahead, so it is locally greedy.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from ..core import Chord, HarmonyLine, MelodyNote, Note, PITCH_NAMES, VOICE_RANGES

logger = logging.getLogger(__name__)

HARMONY_MODES = ("choir", "classical")


@dataclass(frozen=True)
class HarmonyOptions:
    """Options for one harmony line.

    Attributes:
        mode: "choir" (favour singable 3rds/6ths) or "classical" (also
            penalize parallel 5ths and octaves)
        voice_type: soprano, alto, tenor or bass
        prefer_above: Prefer harmony above (True) or below (False) the melody
    """

    mode: str = "choir"
    voice_type: str = "alto"
    prefer_above: bool = False

    def __post_init__(self):
        if self.mode not in HARMONY_MODES:
            raise ValueError(f"Unknown harmony mode: {self.mode!r}")
        if self.voice_type not in VOICE_RANGES:
            raise ValueError(f"Unknown voice type: {self.voice_type!r}")

    @property
    def voice_range(self) -> Tuple[int, int]:
        return VOICE_RANGES[self.voice_type]


# Parts produced by generate_lines: (part name, options)
DEFAULT_PARTS = [
    ("Harmony Above", HarmonyOptions(mode="choir", voice_type="soprano", prefer_above=True)),
    ("Harmony Below", HarmonyOptions(mode="choir", voice_type="alto", prefer_above=False)),
    ("Bass Line", HarmonyOptions(mode="choir", voice_type="bass", prefer_above=False)),
]


@dataclass(frozen=True)
class VoiceState:
    """What the fold carries from one melody note to the next."""

    prev_harmony: Optional[int] = None
    prev_melody: Optional[int] = None


def find_active_chord(chords: Sequence[Chord], beat: float) -> Optional[Chord]:
    """
    Chord sounding at ``beat``.

    The first chord whose [start, start + duration) contains the beat; else
    the last chord starting at or before it; else None.
    """
    for chord in chords:
        if chord.contains_beat(beat):
            return chord
    before = [c for c in chords if c.start_beat <= beat]
    return before[-1] if before else None


def candidate_pitches(chord_notes: Sequence[str], range_min: int, range_max: int) -> List[int]:
    """Every octave (1-8) of each chord tone inside the range, chord order first."""
    pitches = []
    for name in chord_notes:
        pitch_class = PITCH_NAMES.index(name)
        for octave in range(1, 9):
            midi = (octave + 1) * 12 + pitch_class
            if range_min <= midi <= range_max:
                pitches.append(midi)
    return pitches


class HarmonyGenerator:
    """Generate harmony lines from a melody and a labelled chord progression."""

    THIRD_BONUS = 10.0
    SIXTH_BONUS = 8.0
    SIDE_BONUS = 3.0
    STEP_BONUS = 6.0  # motion <= 2 semitones
    SMALL_LEAP_BONUS = 3.0  # motion <= 4 semitones
    PARALLEL_PENALTY = 20.0
    RANGE_CENTER_WEIGHT = 0.2

    def score_candidate(
        self,
        candidate: int,
        melody_midi: int,
        state: VoiceState,
        options: HarmonyOptions,
    ) -> float:
        """Score one candidate pitch; higher is better."""
        score = 0.0

        interval = abs(candidate - melody_midi) % 12
        if interval in (3, 4):
            score += self.THIRD_BONUS
        if interval in (8, 9):
            score += self.SIXTH_BONUS

        if options.prefer_above and candidate > melody_midi:
            score += self.SIDE_BONUS
        if not options.prefer_above and candidate < melody_midi:
            score += self.SIDE_BONUS

        if state.prev_harmony is not None:
            motion = abs(candidate - state.prev_harmony)
            if motion <= 2:
                score += self.STEP_BONUS
            elif motion <= 4:
                score += self.SMALL_LEAP_BONUS
            else:
                score -= motion

            if options.mode == "classical" and state.prev_melody is not None:
                prev_interval = abs(state.prev_harmony - state.prev_melody) % 12
                if prev_interval == 7 and interval == 7:
                    score -= self.PARALLEL_PENALTY
                if prev_interval == 0 and interval == 0:
                    score -= self.PARALLEL_PENALTY

        range_min, range_max = options.voice_range
        score -= abs(candidate - (range_min + range_max) / 2) * self.RANGE_CENTER_WEIGHT
        return score

    @staticmethod
    def _third_away(melody_midi: int, options: HarmonyOptions) -> int:
        """Major 3rd above or minor 3rd below the melody."""
        return melody_midi + (4 if options.prefer_above else -3)

    def choose_pitch(
        self,
        melody_note: Note,
        chords: Sequence[Chord],
        state: VoiceState,
        options: HarmonyOptions,
    ) -> int:
        """Harmony pitch for one melody note given the carried state."""
        melody_midi = melody_note.midi_number
        chord = find_active_chord(chords, melody_note.start_beat)
        if chord is None:
            return self._third_away(melody_midi, options)

        range_min, range_max = options.voice_range
        candidates = [
            midi for midi in candidate_pitches(chord.notes, range_min, range_max)
            if midi != melody_midi
        ]
        if not candidates:
            return self._third_away(melody_midi, options)

        best, best_score = candidates[0], float("-inf")
        for candidate in candidates:
            score = self.score_candidate(candidate, melody_midi, state, options)
            if score > best_score:
                best, best_score = candidate, score
        return best

    def step(
        self,
        state: VoiceState,
        melody_note: Note,
        chords: Sequence[Chord],
        options: HarmonyOptions,
    ) -> Tuple[VoiceState, Note]:
        """One fold step: harmonize a note and return the next state."""
        pitch = self.choose_pitch(melody_note, chords, state, options)
        note = Note.from_midi(pitch, start_beat=melody_note.start_beat, duration=melody_note.duration)
        return VoiceState(prev_harmony=pitch, prev_melody=melody_note.midi_number), note

    def generate_line(
        self,
        melody: Sequence[MelodyNote],
        chords: Sequence[Chord],
        options: Optional[HarmonyOptions] = None,
    ) -> List[Note]:
        """
        Generate one harmony line, one note per melody note.

        Args:
            melody: Melody notes in time order
            chords: Beat-positioned chords
            options: HarmonyOptions (default: choir, alto, below)

        Returns:
            Harmony notes aligned with the melody
        """
        options = options or HarmonyOptions()
        state = VoiceState()
        line = []
        for melody_note in melody:
            state, note = self.step(state, melody_note, chords, options)
            line.append(note)
        return line

    def generate_lines(
        self,
        melody: Sequence[MelodyNote],
        chords: Sequence[Chord],
        mode: str = "choir",
    ) -> List[HarmonyLine]:
        """
        Generate the three standard parts: Harmony Above (soprano),
        Harmony Below (alto) and Bass Line (bass), all in ``mode``
        (choir unless asked otherwise).

        Returns an empty list for an empty melody.
        """
        if not melody:
            logger.debug("Harmony: empty melody, no lines generated")
            return []

        lines = []
        for part_name, options in DEFAULT_PARTS:
            options = replace(options, mode=mode)
            notes = self.generate_line(melody, chords, options)
            lines.append(HarmonyLine(
                id=str(uuid.uuid4()),
                part_name=part_name,
                voice_type=options.voice_type,
                notes=tuple(notes),
            ))
        logger.debug("Harmony: %d lines x %d notes", len(lines), len(melody))
        return lines
