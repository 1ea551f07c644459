"""Musical value objects: keys, chords, harmony lines and the analysis result."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..theory.notes import normalize_note_name
from ..theory.tables import CHORD_INTERVALS, chord_symbol, get_chord_notes
from .constants import DEFAULT_TIME_SIGNATURE, VOICE_RANGES
from .note import MelodyNote, Note

KEY_MODES = ("major", "minor")
SOURCE_TYPES = ("audio", "sheet", "midi", "musicxml")


@dataclass(frozen=True)
class Key:
    """A tonal center: one of 12 tonics x {major, minor}."""

    tonic: str
    mode: str

    def __post_init__(self):
        object.__setattr__(self, "tonic", normalize_note_name(self.tonic))
        if self.mode not in KEY_MODES:
            raise ValueError(f"Unknown key mode: {self.mode!r}")

    @property
    def label(self) -> str:
        return f"{self.tonic} {self.mode}"

    @property
    def scale_type(self) -> str:
        return "major" if self.mode == "major" else "natural_minor"


@dataclass(frozen=True)
class Chord:
    """A chord positioned in beats.

    ``notes`` and ``symbol`` are derived from (root, quality).
    """

    root: str
    quality: str
    start_beat: float = 0.0
    duration: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "root", normalize_note_name(self.root))
        if self.quality not in CHORD_INTERVALS:
            raise ValueError(f"Unknown chord quality: {self.quality!r}")

    @property
    def notes(self) -> Tuple[str, ...]:
        return tuple(get_chord_notes(self.root, self.quality))

    @property
    def symbol(self) -> str:
        return chord_symbol(self.root, self.quality)

    @property
    def end_beat(self) -> float:
        return self.start_beat + self.duration

    def contains_beat(self, beat: float) -> bool:
        """True when ``beat`` falls in [start_beat, start_beat + duration)."""
        return self.start_beat <= beat < self.end_beat


@dataclass(frozen=True)
class ChordWithFunction(Chord):
    """A chord with its Roman-numeral label relative to a specific key."""

    roman_numeral: str = ""


@dataclass(frozen=True)
class HarmonyLine:
    """A generated vocal part."""

    id: str
    part_name: str
    voice_type: str
    notes: Tuple[Note, ...] = ()

    def __post_init__(self):
        if self.voice_type not in VOICE_RANGES:
            raise ValueError(f"Unknown voice type: {self.voice_type!r}")
        object.__setattr__(self, "notes", tuple(self.notes))


def _note_dict(note: Note) -> Dict[str, Any]:
    data = asdict(note)
    data["frequency"] = note.frequency
    return data


def _chord_dict(chord: Chord) -> Dict[str, Any]:
    data = asdict(chord)
    data["symbol"] = chord.symbol
    data["notes"] = list(chord.notes)
    return data


@dataclass(frozen=True)
class AnalysisResult:
    """Root aggregate of one analysis run."""

    id: str
    song_title: str
    source_type: str
    key: Key
    tempo: float
    created_at: str
    time_signature: Tuple[int, int] = DEFAULT_TIME_SIGNATURE
    melody: Tuple[MelodyNote, ...] = ()
    chords: Tuple[ChordWithFunction, ...] = ()
    harmony_lines: Tuple[HarmonyLine, ...] = ()
    key_confidence: float = 0.0
    music_xml: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        if self.source_type not in SOURCE_TYPES:
            raise ValueError(f"Unknown source type: {self.source_type!r}")
        for name in ("melody", "chords", "harmony_lines"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "time_signature", tuple(self.time_signature))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dictionary."""
        return {
            "id": self.id,
            "song_title": self.song_title,
            "source_type": self.source_type,
            "key": {"tonic": self.key.tonic, "mode": self.key.mode, "label": self.key.label},
            "key_confidence": self.key_confidence,
            "tempo": self.tempo,
            "time_signature": list(self.time_signature),
            "melody": [_note_dict(n) for n in self.melody],
            "chords": [_chord_dict(c) for c in self.chords],
            "harmony_lines": [
                {
                    "id": line.id,
                    "part_name": line.part_name,
                    "voice_type": line.voice_type,
                    "notes": [_note_dict(n) for n in line.notes],
                }
                for line in self.harmony_lines
            ],
            "music_xml": self.music_xml,
            "created_at": self.created_at,
        }
