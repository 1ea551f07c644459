"""Harmony Coach - Melody, chord, key and harmony analysis for singers.

Architecture Layers:
    1. core/       - Data model (notes, pitch frames, keys, chords, results)
    2. theory/     - Music theory tables (notes, scales, chords, solfege)
    3. input/      - Audio loading and MIDI score reading
    4. analysis/   - Low-level signal analysis (pitch, segments, tempo)
    5. inference/  - Musical understanding (chords, key, melody, labels, harmony)
    6. processing/ - Note post-processing (quantize)
    7. output/     - Export (MIDI, MusicXML)
"""

__version__ = "0.1.0"

# Core types (imported first: the theory layer builds on core constants)
from .core import (
    Note,
    MelodyNote,
    PitchFrame,
    Key,
    Chord,
    ChordWithFunction,
    HarmonyLine,
    AnalysisResult,
)

# Theory
from .theory import get_chord_notes, get_scale_notes, midi_to_frequency, frequency_to_midi

# Input layer
from .input import AudioLoader, MidiScoreReader, ParsedScore

# Analysis layer
from .analysis import PitchDetector, RealtimePitchDetector, TempoAnalyzer

# Inference layer
from .inference import (
    ChordRecognizer,
    KeyDetector,
    MelodyExtractor,
    HarmonyGenerator,
    HarmonyOptions,
    label_chords,
)

# Processing layer
from .processing import Quantizer

# Output layer
from .output import MIDIExporter, MusicXMLExporter

# Pipeline
from .analyzer import AnalysisConfig, SongAnalyzer, assign_chord_tones

__all__ = [
    # Core
    "Note",
    "MelodyNote",
    "PitchFrame",
    "Key",
    "Chord",
    "ChordWithFunction",
    "HarmonyLine",
    "AnalysisResult",
    # Theory
    "get_chord_notes",
    "get_scale_notes",
    "midi_to_frequency",
    "frequency_to_midi",
    # Input
    "AudioLoader",
    "MidiScoreReader",
    "ParsedScore",
    # Analysis
    "PitchDetector",
    "RealtimePitchDetector",
    "TempoAnalyzer",
    # Inference
    "ChordRecognizer",
    "KeyDetector",
    "MelodyExtractor",
    "HarmonyGenerator",
    "HarmonyOptions",
    "label_chords",
    # Processing
    "Quantizer",
    # Output
    "MIDIExporter",
    "MusicXMLExporter",
    # Pipeline
    "AnalysisConfig",
    "SongAnalyzer",
    "assign_chord_tones",
]
