"""Inference layer - Musical understanding and generation.

This layer builds musical structure from analysis output:
- Chord recognition (chroma template matching)
- Key detection (Krumhansl-Schmuckler)
- Melody extraction
- Roman-numeral chord labeling
- Harmony line generation

Pipeline: Pitch frames + audio → [Key, Melody, Chords] → Labels → Harmony
"""

from .chords import (
    ChordRecognizer,
    ChordRecognizerConfig,
    ChordDetection,
    cosine_similarity,
    detections_to_chords,
)
from .key import KeyDetector, KeyInfo, KeyCandidate, pearson_correlation
from .melody import MelodyExtractor, extract_top_line
from .labeler import get_roman_numeral, label_chords, get_diatonic_chords
from .harmony import HarmonyGenerator, HarmonyOptions, find_active_chord

__all__ = [
    # Chord recognition
    "ChordRecognizer",
    "ChordRecognizerConfig",
    "ChordDetection",
    "cosine_similarity",
    "detections_to_chords",
    # Key detection
    "KeyDetector",
    "KeyInfo",
    "KeyCandidate",
    "pearson_correlation",
    # Melody
    "MelodyExtractor",
    "extract_top_line",
    # Labeling
    "get_roman_numeral",
    "label_chords",
    "get_diatonic_chords",
    # Harmony
    "HarmonyGenerator",
    "HarmonyOptions",
    "find_active_chord",
]
