"""Solfege syllables for notes.

Supports fixed-Do (Do = C always) and moveable-Do (Do = key tonic, or La =
tonic for minor keys). Moveable-Do is the default since it is the common
choice for choir and vocal training.
"""

from .notes import interval_in_semitones, note_to_pitch_class

MAJOR_SCALE_SOLFEGE = ["Do", "Re", "Mi", "Fa", "Sol", "La", "Ti"]
MINOR_SCALE_SOLFEGE = ["La", "Ti", "Do", "Re", "Mi", "Fa", "Sol"]
MAJOR_SCALE_INTERVALS = [0, 2, 4, 5, 7, 9, 11]

# Chromatic syllables by semitones above Do
SOLFEGE_SHARP = ["Do", "Di", "Re", "Ri", "Mi", "Fa", "Fi", "Sol", "Si", "La", "Li", "Ti"]
SOLFEGE_FLAT = ["Do", "Ra", "Re", "Me", "Mi", "Fa", "Se", "Sol", "Le", "La", "Te", "Ti"]

# La sits 9 semitones above Do
_MINOR_TONIC_OFFSET = 9


def note_to_solfege(
    note: str,
    key=None,
    mode: str = "moveable",
    prefer_flat: bool = False,
) -> str:
    """
    Convert a note name to a solfege syllable.

    Args:
        note: Note name (C, D#, Eb, ...)
        key: Key context for moveable-Do (default C major)
        mode: "fixed" (Do = C) or "moveable" (Do = tonic)
        prefer_flat: Use Ra/Me/Se/Le/Te instead of Di/Ri/Fi/Si/Li

    Returns:
        Solfege syllable
    """
    if mode not in ("fixed", "moveable"):
        raise ValueError(f"Unknown solfege mode: {mode!r}")

    if mode == "fixed" or key is None:
        semitones = note_to_pitch_class(note)
    else:
        semitones = interval_in_semitones(key.tonic, note)
        if key.mode == "minor":
            semitones = (semitones + _MINOR_TONIC_OFFSET) % 12

    if semitones in MAJOR_SCALE_INTERVALS:
        return MAJOR_SCALE_SOLFEGE[MAJOR_SCALE_INTERVALS.index(semitones)]

    return SOLFEGE_FLAT[semitones] if prefer_flat else SOLFEGE_SHARP[semitones]


def note_to_solfege_with_octave(
    note: str,
    octave: int,
    key=None,
    mode: str = "moveable",
    reference_octave: int = 4,
) -> str:
    """Solfege with octave marks: Do' one octave up, Do, one octave down."""
    syllable = note_to_solfege(note, key, mode)
    diff = octave - reference_octave
    if diff > 0:
        return syllable + "'" * diff
    if diff < 0:
        return syllable + "," * -diff
    return syllable


def get_solfege_scale(key) -> list:
    if key.mode == "minor":
        return list(MINOR_SCALE_SOLFEGE)
    return list(MAJOR_SCALE_SOLFEGE)
