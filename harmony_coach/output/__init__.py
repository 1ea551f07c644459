"""Output layer - Export to various formats.

This layer handles exporting analysis results to:
- MIDI files (melody and one track per harmony part)
- MusicXML (for notation software, requires music21)
"""

from .midi import MIDIExporter
from .musicxml import MusicXMLExporter

__all__ = [
    "MIDIExporter",
    "MusicXMLExporter",
]
