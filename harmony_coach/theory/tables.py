"""Static music theory tables: scales, chords, key profiles, chroma templates."""

from typing import Dict, List, NamedTuple, Sequence

import numpy as np

from ..core.constants import PITCH_NAMES
from .notes import interval_in_semitones, normalize_note_name, transpose


# Scale definitions (intervals in semitones from root)
SCALE_INTERVALS: Dict[str, List[int]] = {
    "major": [0, 2, 4, 5, 7, 9, 11],
    "natural_minor": [0, 2, 3, 5, 7, 8, 10],
    "harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
    "melodic_minor": [0, 2, 3, 5, 7, 9, 11],
    "dorian": [0, 2, 3, 5, 7, 9, 10],
    "mixolydian": [0, 2, 4, 5, 7, 9, 10],
    "pentatonic_major": [0, 2, 4, 7, 9],
    "pentatonic_minor": [0, 3, 5, 7, 10],
}

# Chord definitions (intervals in semitones from root)
CHORD_INTERVALS: Dict[str, List[int]] = {
    "major": [0, 4, 7],
    "minor": [0, 3, 7],
    "diminished": [0, 3, 6],
    "augmented": [0, 4, 8],
    "dominant7": [0, 4, 7, 10],
    "major7": [0, 4, 7, 11],
    "minor7": [0, 3, 7, 10],
    "diminished7": [0, 3, 6, 9],
    "half-diminished7": [0, 3, 6, 10],
    "sus2": [0, 2, 7],
    "sus4": [0, 5, 7],
}

CHORD_QUALITY_SYMBOLS: Dict[str, str] = {
    "major": "",
    "minor": "m",
    "diminished": "dim",
    "augmented": "aug",
    "dominant7": "7",
    "major7": "maj7",
    "minor7": "m7",
    "diminished7": "dim7",
    "half-diminished7": "m7b5",
    "sus2": "sus2",
    "sus4": "sus4",
}

# Qualities covered by the chroma template bank, in matching order
TEMPLATE_QUALITIES = [
    "major", "minor", "diminished", "augmented",
    "dominant7", "major7", "minor7",
]

# Diatonic triad qualities per scale degree
MAJOR_CHORD_QUALITIES = [
    "major", "minor", "minor", "major", "major", "minor", "diminished",
]
MINOR_CHORD_QUALITIES = [
    "minor", "diminished", "major", "minor", "minor", "major", "major",
]

# Krumhansl-Schmuckler key profiles (tonic at index 0)
MAJOR_KEY_PROFILE = np.array(
    [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
)
MINOR_KEY_PROFILE = np.array(
    [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
)

CHORD_TONE_NAMES = ["root", "third", "fifth", "seventh"]


class ChordTemplate(NamedTuple):
    """One entry of the chord template bank."""
    root: str
    quality: str
    symbol: str
    template: np.ndarray


def _check_quality(quality: str) -> List[int]:
    try:
        return CHORD_INTERVALS[quality]
    except KeyError:
        raise ValueError(f"Unknown chord quality: {quality!r}") from None


def get_scale_notes(root: str, scale_type: str = "major") -> List[str]:
    """Scale notes for a root; unknown scale types fall back to major."""
    intervals = SCALE_INTERVALS.get(scale_type, SCALE_INTERVALS["major"])
    return [transpose(root, i) for i in intervals]


def get_chord_notes(root: str, quality: str) -> List[str]:
    """Pitch classes of a chord, root first, in interval-table order."""
    return [transpose(root, i) for i in _check_quality(quality)]


def chord_symbol(root: str, quality: str) -> str:
    """Chord symbol string, e.g. "Am7", "Cmaj7"."""
    _check_quality(quality)
    return f"{normalize_note_name(root)}{CHORD_QUALITY_SYMBOLS[quality]}"


def chord_chroma_template(root: str, quality: str) -> np.ndarray:
    """12-bin binary template: 1.0 at each pitch class of the chord."""
    template = np.zeros(12)
    for note in get_chord_notes(root, quality):
        template[PITCH_NAMES.index(note)] = 1.0
    return template


def get_all_chord_templates() -> List[ChordTemplate]:
    """All 84 templates, root-major outer loop, quality inner loop."""
    return [
        ChordTemplate(root, quality, chord_symbol(root, quality), chord_chroma_template(root, quality))
        for root in PITCH_NAMES
        for quality in TEMPLATE_QUALITIES
    ]


def identify_chord_tone(note: str, chord_root: str, quality: str) -> str:
    """Role of a pitch class within a chord, by interval from the root."""
    interval = interval_in_semitones(chord_root, note)
    intervals = _check_quality(quality)
    if interval in intervals:
        return CHORD_TONE_NAMES[intervals.index(interval)]
    return "non-chord"


def rotate_array(arr: Sequence, n: int) -> np.ndarray:
    """Rotate right by ``n`` positions (modulo length)."""
    arr = np.asarray(arr)
    if len(arr) == 0:
        return arr.copy()
    return np.roll(arr, n % len(arr))
