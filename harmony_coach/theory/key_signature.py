"""Key signature info (sharps/flats) for a key."""

from dataclasses import dataclass, field
from typing import List

SHARP_ORDER = ["F", "C", "G", "D", "A", "E", "B"]
FLAT_ORDER = ["B", "E", "A", "D", "G", "C", "F"]

# Position on the circle of fifths (positive = sharps, negative = flats)
MAJOR_FIFTHS = {
    "C": 0, "G": 1, "D": 2, "A": 3, "E": 4, "B": 5, "F#": 6,
    "F": -1, "A#": -2, "D#": -3, "G#": -4, "C#": -5,
}
MINOR_FIFTHS = {
    "A": 0, "E": 1, "B": 2, "F#": 3, "C#": 4, "G#": 5,
    "D": -1, "G": -2, "C": -3, "F": -4, "A#": -5, "D#": -6,
}


@dataclass(frozen=True)
class KeySignatureInfo:
    fifths: int
    type: str  # "sharps", "flats" or "none"
    count: int
    note_names: List[str] = field(default_factory=list)
    display: str = ""
    short_display: str = ""


def get_key_signature(key) -> KeySignatureInfo:
    """
    Key signature for a key.

    e.g. D major -> 2 sharps, note_names ["F#", "C#"], display "2♯: F#, C#"
    """
    table = MINOR_FIFTHS if key.mode == "minor" else MAJOR_FIFTHS
    fifths = table.get(key.tonic, 0)

    if fifths == 0:
        return KeySignatureInfo(
            fifths=0,
            type="none",
            count=0,
            note_names=[],
            display="No sharps or flats",
            short_display="",
        )

    if fifths > 0:
        names = [f"{n}#" for n in SHARP_ORDER[:fifths]]
        return KeySignatureInfo(
            fifths=fifths,
            type="sharps",
            count=fifths,
            note_names=names,
            display=f"{fifths}♯: {', '.join(names)}",
            short_display=f"{fifths}♯",
        )

    count = -fifths
    names = [f"{n}♭" for n in FLAT_ORDER[:count]]
    return KeySignatureInfo(
        fifths=fifths,
        type="flats",
        count=count,
        note_names=names,
        display=f"{count}♭: {', '.join(names)}",
        short_display=f"{count}♭",
    )
