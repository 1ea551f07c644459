"""Group pitch frames into same-note segments."""

from dataclasses import dataclass, field
from typing import List, Sequence

from ..core import PitchFrame


@dataclass
class NoteSegment:
    """A run of consecutive frames sharing one (note, octave)."""

    note: str
    octave: int
    start_time: float  # ms
    end_time: float  # ms
    frames: List[PitchFrame] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        return self.end_time - self.start_time

    @property
    def avg_frequency(self) -> float:
        return sum(f.frequency for f in self.frames) / len(self.frames)

    @property
    def avg_clarity(self) -> float:
        return sum(f.clarity for f in self.frames) / len(self.frames)


def group_into_segments(frames: Sequence[PitchFrame]) -> List[NoteSegment]:
    """
    Group consecutive frames with the same note and octave into segments.

    A silent frame closes the open segment; a frame with a different note
    closes it and opens a new one. Frames must be in timestamp order.
    """
    segments: List[NoteSegment] = []
    current = None

    for frame in frames:
        if not frame.is_voiced:
            if current is not None:
                segments.append(current)
                current = None
            continue

        if current is not None and current.note == frame.note and current.octave == frame.octave:
            current.end_time = frame.timestamp
            current.frames.append(frame)
        else:
            if current is not None:
                segments.append(current)
            current = NoteSegment(
                note=frame.note,
                octave=frame.octave,
                start_time=frame.timestamp,
                end_time=frame.timestamp,
                frames=[frame],
            )

    if current is not None:
        segments.append(current)

    return segments
