"""MIDI export functionality."""

import logging
from pathlib import Path
from typing import Iterable

import pretty_midi

from ..core import AnalysisResult, Note
from ..theory.notes import note_to_pitch_class

logger = logging.getLogger(__name__)


class MIDIExporter:
    """Export an analysis result (melody + harmony parts) to MIDI."""

    def __init__(
        self,
        melody_program: int = 0,
        harmony_program: int = 52,
        melody_velocity: int = 100,
        harmony_velocity: int = 80,
    ):
        """
        Initialize MIDIExporter.

        Args:
            melody_program: MIDI program number for the melody (0-127)
            harmony_program: MIDI program number for every harmony part
            melody_velocity: Velocity of melody notes
            harmony_velocity: Velocity of harmony notes
        """
        for program in (melody_program, harmony_program):
            if not 0 <= program <= 127:
                raise ValueError(f"MIDI program must be in 0..127, got {program}")
        self.melody_program = melody_program
        self.harmony_program = harmony_program
        self.melody_velocity = melody_velocity
        self.harmony_velocity = harmony_velocity

    def export(self, result: AnalysisResult, output_path: str) -> None:
        """
        Export an analysis result to a MIDI file.

        Args:
            result: AnalysisResult to render
            output_path: Path to output MIDI file
        """
        midi = self.to_pretty_midi(result)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(str(output_path))
        logger.debug("Wrote %d MIDI tracks to %s", len(midi.instruments), output_path)

    def to_pretty_midi(self, result: AnalysisResult) -> pretty_midi.PrettyMIDI:
        """Convert a result to a PrettyMIDI object without saving."""
        seconds_per_beat = 60.0 / result.tempo
        midi = pretty_midi.PrettyMIDI(initial_tempo=result.tempo)

        numerator, denominator = result.time_signature
        midi.time_signature_changes.append(
            pretty_midi.TimeSignature(numerator, denominator, 0.0)
        )
        key_number = note_to_pitch_class(result.key.tonic)
        if result.key.mode == "minor":
            key_number += 12
        midi.key_signature_changes.append(pretty_midi.KeySignature(key_number, 0.0))

        midi.instruments.append(self._instrument(
            "Melody", self.melody_program, self.melody_velocity,
            result.melody, seconds_per_beat,
        ))
        for line in result.harmony_lines:
            midi.instruments.append(self._instrument(
                line.part_name, self.harmony_program, self.harmony_velocity,
                line.notes, seconds_per_beat,
            ))
        return midi

    @staticmethod
    def _instrument(
        name: str,
        program: int,
        velocity: int,
        notes: Iterable[Note],
        seconds_per_beat: float,
    ) -> pretty_midi.Instrument:
        instrument = pretty_midi.Instrument(program=program, name=name)
        for note in notes:
            instrument.notes.append(pretty_midi.Note(
                velocity=velocity,
                pitch=note.midi_number,
                start=note.start_beat * seconds_per_beat,
                end=note.end_beat * seconds_per_beat,
            ))
        return instrument
