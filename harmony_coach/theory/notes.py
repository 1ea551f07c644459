"""Note-name, pitch-class, MIDI and frequency conversions.

All functions are pure. Note names are the canonical sharp spellings from
``PITCH_NAMES``; flat spellings are accepted on input and normalized.
"""

import math
from typing import Tuple

from ..core.constants import A4_FREQUENCY, A4_MIDI, ENHARMONIC_MAP, FLAT_NAMES, PITCH_NAMES


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_note_name(name: str) -> str:
    """Map a note spelling (sharp or flat) to its canonical sharp name."""
    canonical = ENHARMONIC_MAP.get(name, name)
    if canonical not in PITCH_NAMES:
        raise ValueError(f"Unknown note name: {name!r}")
    return canonical


def note_to_pitch_class(name: str) -> int:
    """Pitch class index (0-11) for a note name. C=0, C#=1, ..., B=11."""
    return PITCH_NAMES.index(normalize_note_name(name))


def pitch_class_to_note(pitch_class: int) -> str:
    return PITCH_NAMES[pitch_class % 12]


def midi_to_frequency(midi: float) -> float:
    """MIDI 69 = A4 = 440Hz."""
    return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))


def frequency_to_midi(freq: float) -> int:
    """Nearest MIDI number for a frequency in Hz."""
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    return _round_half_up(A4_MIDI + 12 * math.log2(freq / A4_FREQUENCY))


def frequency_to_note(freq: float) -> Tuple[str, int, int]:
    """
    Convert a frequency to the nearest note.

    Returns:
        Tuple of (note name, octave, cents off). Cents are negative when the
        frequency is flat of the note and positive when sharp.
    """
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    midi = A4_MIDI + 12 * math.log2(freq / A4_FREQUENCY)
    rounded = _round_half_up(midi)
    cents_off = _round_half_up((midi - rounded) * 100)
    return PITCH_NAMES[rounded % 12], rounded // 12 - 1, cents_off


def note_to_midi(name: str, octave: int) -> int:
    """C4 = 60, A4 = 69."""
    return (octave + 1) * 12 + note_to_pitch_class(name)


def midi_to_note(midi: int) -> Tuple[str, int]:
    """Convert a MIDI number to (note name, octave)."""
    midi = int(midi)
    return PITCH_NAMES[midi % 12], midi // 12 - 1


def interval_in_semitones(from_note: str, to_note: str) -> int:
    """Ascending interval (0-11) from one pitch class to another."""
    return (note_to_pitch_class(to_note) - note_to_pitch_class(from_note)) % 12


def transpose(name: str, semitones: int) -> str:
    """Transpose a pitch class by a number of semitones."""
    return PITCH_NAMES[(note_to_pitch_class(name) + semitones) % 12]


def format_note(name: str, use_flats: bool = False) -> str:
    """Display spelling of a note, using flats if requested."""
    name = normalize_note_name(name)
    return FLAT_NAMES[name] if use_flats else name


def format_note_with_octave(name: str, octave: int, use_flats: bool = False) -> str:
    """e.g. "C4", "F#5", "Bb3"."""
    return f"{format_note(name, use_flats)}{octave}"
