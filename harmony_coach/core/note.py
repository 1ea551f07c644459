"""Note data classes - the fundamental units of the analysis pipeline."""

from dataclasses import dataclass
from typing import Optional

from .constants import A4_FREQUENCY, A4_MIDI, PITCH_NAMES


@dataclass(frozen=True)
class Note:
    """A pitched note positioned in beats.

    ``name``/``octave`` always agree with ``midi_number``; ``frequency`` is
    derived from the MIDI number and never stored.
    """

    name: str
    octave: int
    midi_number: int
    duration: float  # in beats
    start_beat: float

    def __post_init__(self):
        if self.name not in PITCH_NAMES:
            raise ValueError(f"Unknown note name: {self.name!r}")
        expected = (self.octave + 1) * 12 + PITCH_NAMES.index(self.name)
        if expected != self.midi_number:
            raise ValueError(
                f"{self.name}{self.octave} does not match MIDI {self.midi_number}"
            )

    @classmethod
    def from_midi(cls, midi: int, start_beat: float = 0.0, duration: float = 1.0) -> "Note":
        """Build a note from a MIDI number."""
        midi = int(midi)
        return cls(
            name=PITCH_NAMES[midi % 12],
            octave=midi // 12 - 1,
            midi_number=midi,
            duration=duration,
            start_beat=start_beat,
        )

    @property
    def frequency(self) -> float:
        """Equal-tempered frequency in Hz."""
        return A4_FREQUENCY * (2 ** ((self.midi_number - A4_MIDI) / 12.0))

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.midi_number % 12

    @property
    def pitch_name(self) -> str:
        """Get note name with octave (e.g., 'C4', 'A#3')."""
        return f"{self.name}{self.octave}"

    @property
    def end_beat(self) -> float:
        return self.start_beat + self.duration


@dataclass(frozen=True)
class MelodyNote(Note):
    """A detected melody note.

    ``chord_tone`` is assigned relative to the chord sounding at
    ``start_beat`` and is None until that happens.
    """

    chord_tone: Optional[str] = None  # root/third/fifth/seventh/non-chord
    confidence: float = 1.0
    measured_frequency: Optional[float] = None  # average detected Hz


@dataclass(frozen=True)
class PitchFrame:
    """One pitch-detection frame.

    ``note`` is None for silence, unvoiced or low-confidence frames.
    """

    frequency: float
    clarity: float
    note: Optional[str]
    octave: Optional[int]
    cents_off: int
    timestamp: float  # ms from start

    @property
    def is_voiced(self) -> bool:
        return self.note is not None and self.octave is not None

    @classmethod
    def silent(cls, clarity: float, timestamp: float) -> "PitchFrame":
        """Explicit silence marker at ``timestamp``."""
        return cls(
            frequency=0.0,
            clarity=float(clarity),
            note=None,
            octave=None,
            cents_off=0,
            timestamp=float(timestamp),
        )
