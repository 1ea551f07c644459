"""Global constants for Harmony Coach."""

# Pitch names (canonical sharps spelling)
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Flat spellings accepted on input, mapped to the canonical sharp
ENHARMONIC_MAP = {"Db": "C#", "Eb": "D#", "Gb": "F#", "Ab": "G#", "Bb": "A#"}

# Display-only flat names
FLAT_NAMES = {
    "C": "C", "C#": "Db", "D": "D", "D#": "Eb", "E": "E", "F": "F",
    "F#": "Gb", "G": "G", "G#": "Ab", "A": "A", "A#": "Bb", "B": "B",
}

# Tuning reference
A4_MIDI = 69
A4_FREQUENCY = 440.0

# Pitch detection defaults
DEFAULT_CLARITY_THRESHOLD = 0.8
DEFAULT_REALTIME_CLARITY_THRESHOLD = 0.75
DEFAULT_MIN_FREQUENCY = 80.0
DEFAULT_MAX_FREQUENCY = 1200.0
PITCH_FRAME_SECONDS = 0.03  # ~30ms, rounded up to a power of two
PITCH_HOP_SECONDS = 0.01

# Chord recognition defaults
DEFAULT_CHORD_FRAME_SIZE = 8192
DEFAULT_CHORD_HOP_SIZE = 4096
DEFAULT_MIN_CHORD_CONFIDENCE = 0.5
DEFAULT_SMOOTHING_WINDOW = 3
CHROMA_OCTAVES = range(2, 8)  # octaves 2-7

# Melody defaults
DEFAULT_MIN_NOTE_MS = 80.0
DEFAULT_SUBDIVISION = 4  # sixteenth notes

# Musical defaults
DEFAULT_TEMPO = 120.0
DEFAULT_TIME_SIGNATURE = (4, 4)
MIN_TEMPO = 60.0
MAX_TEMPO = 180.0
MIN_IOI_MS = 150.0
MAX_IOI_MS = 2000.0

# Voice ranges (MIDI, inclusive)
VOICE_RANGES = {
    "soprano": (60, 81),  # C4 to A5
    "alto": (55, 76),  # G3 to E5
    "tenor": (48, 69),  # C3 to A4
    "bass": (40, 62),  # E2 to D4
}

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
