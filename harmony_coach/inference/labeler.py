"""Chord labeling - Roman-numeral functions of chords within a key."""

from dataclasses import asdict
from typing import List, Sequence

from ..core import Chord, ChordWithFunction, Key
from ..theory.notes import interval_in_semitones
from ..theory.tables import MAJOR_CHORD_QUALITIES, MINOR_CHORD_QUALITIES, get_scale_notes

ROMAN_NUMERALS_UPPER = ["I", "II", "III", "IV", "V", "VI", "VII"]
ROMAN_NUMERALS_LOWER = ["i", "ii", "iii", "iv", "v", "vi", "vii"]

# Chromatic labels by semitones above the tonic, for non-diatonic roots
CHROMATIC_LABELS = ["I", "bII", "II", "bIII", "III", "IV", "#IV", "V", "bVI", "VI", "bVII", "VII"]

QUALITY_SUFFIX = {
    "major": "",
    "minor": "",
    "diminished": "°",
    "augmented": "+",
    "dominant7": "7",
    "major7": "maj7",
    "minor7": "7",
    "diminished7": "°7",
    "half-diminished7": "ø7",
    "sus2": "sus2",
    "sus4": "sus4",
}

UPPERCASE_QUALITIES = {"major", "augmented", "dominant7", "major7"}


def scale_degree(root: str, key: Key) -> int:
    """Scale degree (0-6) of a root in the key, or -1 if not diatonic."""
    scale = get_scale_notes(key.tonic, key.scale_type)
    return scale.index(root) if root in scale else -1


def get_roman_numeral(chord: Chord, key: Key) -> str:
    """
    Roman numeral for a chord in a key, e.g. "I", "iv", "V7", "ii°".

    Non-diatonic roots are labelled by chromatic distance from the tonic
    ("bVII", "#iv", ...). Case follows the chord quality in both cases.
    """
    upper = chord.quality in UPPERCASE_QUALITIES
    degree = scale_degree(chord.root, key)

    if degree == -1:
        label = CHROMATIC_LABELS[interval_in_semitones(key.tonic, chord.root)]
        base = label if upper else label.lower()
    else:
        base = (ROMAN_NUMERALS_UPPER if upper else ROMAN_NUMERALS_LOWER)[degree]

    return base + QUALITY_SUFFIX[chord.quality]


def label_chords(chords: Sequence[Chord], key: Key) -> List[ChordWithFunction]:
    """Attach Roman numerals relative to ``key`` to every chord."""
    labeled = []
    for chord in chords:
        fields = {k: v for k, v in asdict(chord).items() if k != "roman_numeral"}
        labeled.append(ChordWithFunction(**fields, roman_numeral=get_roman_numeral(chord, key)))
    return labeled


def get_diatonic_chords(key: Key) -> List[Chord]:
    """The seven diatonic triads of a major or natural-minor key."""
    qualities = MAJOR_CHORD_QUALITIES if key.mode == "major" else MINOR_CHORD_QUALITIES
    return [
        Chord(root, quality)
        for root, quality in zip(get_scale_notes(key.tonic, key.scale_type), qualities)
    ]
