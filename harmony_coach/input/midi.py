"""MIDI score reading - symbolic input as beat-positioned notes."""

import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np
import pretty_midi

from ..core import Key, Note, PitchFrame
from ..core.constants import DEFAULT_TEMPO, DEFAULT_TIME_SIGNATURE
from ..inference.key import KeyDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedScore:
    """Notes and global attributes read from a score file."""

    notes: Tuple[Note, ...]
    tempo: float
    time_signature: Tuple[int, int]
    key: Key
    total_beats: float


class MidiScoreReader:
    """Read a Standard MIDI File into Notes positioned in beats."""

    def __init__(self, include_drums: bool = False):
        self.include_drums = include_drums

    def read(self, path: str) -> ParsedScore:
        """
        Parse a MIDI file.

        Args:
            path: Path to .mid/.midi file

        Returns:
            ParsedScore with notes sorted by start beat, highest pitch first

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"MIDI file not found: {path}")
        return self.parse(pretty_midi.PrettyMIDI(str(path)))

    def parse(self, midi: pretty_midi.PrettyMIDI) -> ParsedScore:
        """Convert an in-memory PrettyMIDI object."""
        _, tempi = midi.get_tempo_changes()
        tempo = float(np.floor(tempi[-1] + 0.5)) if len(tempi) else DEFAULT_TEMPO

        time_signature = DEFAULT_TIME_SIGNATURE
        if midi.time_signature_changes:
            last = midi.time_signature_changes[-1]
            time_signature = (last.numerator, last.denominator)

        ticks_per_beat = float(midi.resolution)
        notes: List[Note] = []
        for instrument in midi.instruments:
            if instrument.is_drum and not self.include_drums:
                continue
            for n in instrument.notes:
                start_tick = midi.time_to_tick(n.start)
                end_tick = midi.time_to_tick(n.end)
                if end_tick <= start_tick:
                    continue
                notes.append(Note.from_midi(
                    n.pitch,
                    start_beat=start_tick / ticks_per_beat,
                    duration=(end_tick - start_tick) / ticks_per_beat,
                ))

        notes.sort(key=lambda n: (n.start_beat, -n.midi_number))

        if not notes:
            warnings.warn("MIDI file contains no pitched notes")

        # Every note counts once, like a fully clear pitch frame
        ms_per_beat = 60000.0 / tempo
        frames = [
            PitchFrame(
                frequency=n.frequency,
                clarity=1.0,
                note=n.name,
                octave=n.octave,
                cents_off=0,
                timestamp=n.start_beat * ms_per_beat,
            )
            for n in notes
        ]
        key_info = KeyDetector().detect_from_frames(frames)

        total_beats = max((n.end_beat for n in notes), default=0.0)
        logger.debug(
            "MIDI: %d notes, %.0f BPM, %s, key %s",
            len(notes), tempo, time_signature, key_info.key.label,
        )
        return ParsedScore(
            notes=tuple(notes),
            tempo=tempo,
            time_signature=time_signature,
            key=key_info.key,
            total_beats=total_beats,
        )
