"""MusicXML export functionality.

music21 is an optional dependency; it is imported only when an export is
requested (``pip install harmony-coach[notation]``).
"""

import logging
from pathlib import Path
from typing import Iterable

from ..core import AnalysisResult, Note

logger = logging.getLogger(__name__)


def _require_music21():
    try:
        import music21
    except ImportError as e:
        raise ImportError(
            "music21 is required for MusicXML export. "
            "Install it with: pip install harmony-coach[notation]"
        ) from e
    return music21


class MusicXMLExporter:
    """Export an analysis result to MusicXML via music21."""

    def __init__(self, melody_part_name: str = "Melody"):
        self.melody_part_name = melody_part_name

    def build_score(self, result: AnalysisResult):
        """
        Build a music21 Score with one part per voice.

        Offsets and durations are in quarter notes, which equal beats.
        """
        m21 = _require_music21()

        score = m21.stream.Score()
        score.metadata = m21.metadata.Metadata()
        score.metadata.title = result.song_title

        parts = [(self.melody_part_name, result.melody)]
        parts.extend((line.part_name, line.notes) for line in result.harmony_lines)

        for name, notes in parts:
            part = m21.stream.Part()
            part.partName = name
            part.insert(0, m21.tempo.MetronomeMark(number=result.tempo))
            part.insert(0, m21.meter.TimeSignature("%d/%d" % result.time_signature))
            part.insert(0, m21.key.Key(result.key.tonic, result.key.mode))
            for note in self._monophonic(notes):
                m21_note = m21.note.Note()
                m21_note.pitch.midi = note.midi_number
                m21_note.duration.quarterLength = note.duration
                part.insert(note.start_beat, m21_note)
            score.insert(0, part)

        return score

    def to_string(self, result: AnalysisResult) -> str:
        """Render the result as a MusicXML document string."""
        _require_music21()
        from music21.musicxml.m21ToXml import GeneralObjectExporter

        score = self.build_score(result)
        exporter = GeneralObjectExporter(score)
        return exporter.parse().decode("utf-8")

    def export(self, result: AnalysisResult, output_path: str) -> None:
        """
        Export a result to a MusicXML file.

        Args:
            result: AnalysisResult to render
            output_path: Path to output MusicXML file
        """
        xml = self.to_string(result)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        Path(output_path).write_text(xml, encoding="utf-8")
        logger.debug("Wrote MusicXML to %s", output_path)

    @staticmethod
    def _monophonic(notes: Iterable[Note]):
        """Drop notes that start before the previous one ends."""
        last_end = float("-inf")
        for note in sorted(notes, key=lambda n: n.start_beat):
            if note.start_beat < last_end or note.duration <= 0:
                continue
            last_end = note.end_beat
            yield note
