"""Music theory layer - lookup tables and pure conversions.

No state: note-name/MIDI/frequency conversions, scale and chord interval
tables, Krumhansl-Schmuckler key profiles, chroma templates, plus display
helpers (solfege, key signatures).
"""

from .notes import (
    normalize_note_name,
    note_to_pitch_class,
    pitch_class_to_note,
    midi_to_frequency,
    frequency_to_midi,
    frequency_to_note,
    note_to_midi,
    midi_to_note,
    interval_in_semitones,
    transpose,
    format_note,
    format_note_with_octave,
)
from .tables import (
    SCALE_INTERVALS,
    CHORD_INTERVALS,
    CHORD_QUALITY_SYMBOLS,
    TEMPLATE_QUALITIES,
    MAJOR_KEY_PROFILE,
    MINOR_KEY_PROFILE,
    ChordTemplate,
    get_scale_notes,
    get_chord_notes,
    chord_symbol,
    chord_chroma_template,
    get_all_chord_templates,
    identify_chord_tone,
    rotate_array,
)
from .solfege import note_to_solfege, note_to_solfege_with_octave, get_solfege_scale
from .key_signature import KeySignatureInfo, get_key_signature

__all__ = [
    "normalize_note_name",
    "note_to_pitch_class",
    "pitch_class_to_note",
    "midi_to_frequency",
    "frequency_to_midi",
    "frequency_to_note",
    "note_to_midi",
    "midi_to_note",
    "interval_in_semitones",
    "transpose",
    "format_note",
    "format_note_with_octave",
    "SCALE_INTERVALS",
    "CHORD_INTERVALS",
    "CHORD_QUALITY_SYMBOLS",
    "TEMPLATE_QUALITIES",
    "MAJOR_KEY_PROFILE",
    "MINOR_KEY_PROFILE",
    "ChordTemplate",
    "get_scale_notes",
    "get_chord_notes",
    "chord_symbol",
    "chord_chroma_template",
    "get_all_chord_templates",
    "identify_chord_tone",
    "rotate_array",
    "note_to_solfege",
    "note_to_solfege_with_octave",
    "get_solfege_scale",
    "KeySignatureInfo",
    "get_key_signature",
]
