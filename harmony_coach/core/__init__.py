"""Core types and constants for Harmony Coach."""

from .note import Note, MelodyNote, PitchFrame
from .music import Key, Chord, ChordWithFunction, HarmonyLine, AnalysisResult
from .constants import (
    PITCH_NAMES,
    DEFAULT_TEMPO,
    DEFAULT_TIME_SIGNATURE,
    VOICE_RANGES,
)

__all__ = [
    "Note",
    "MelodyNote",
    "PitchFrame",
    "Key",
    "Chord",
    "ChordWithFunction",
    "HarmonyLine",
    "AnalysisResult",
    "PITCH_NAMES",
    "DEFAULT_TEMPO",
    "DEFAULT_TIME_SIGNATURE",
    "VOICE_RANGES",
]
