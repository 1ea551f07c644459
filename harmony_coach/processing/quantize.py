"""Note quantization - Snap beat positions to a rhythmic grid."""

from dataclasses import replace
from typing import List, Sequence, TypeVar

import numpy as np

from ..core import Note
from ..core.constants import DEFAULT_SUBDIVISION

NoteT = TypeVar("NoteT", bound=Note)


class Quantizer:
    """Quantize note start beats and durations to a grid."""

    def __init__(self, subdivision: int = DEFAULT_SUBDIVISION):
        """
        Initialize Quantizer.

        Args:
            subdivision: Grid divisions per beat (e.g., 4 for 16th notes)
        """
        if subdivision <= 0:
            raise ValueError(f"subdivision must be positive, got {subdivision}")
        self.subdivision = subdivision

    @property
    def grid(self) -> float:
        """Length of one grid unit in beats."""
        return 1.0 / self.subdivision

    def quantize(self, notes: Sequence[NoteT]) -> List[NoteT]:
        """
        Snap start beats and durations independently to the grid.

        Durations never round below one grid unit.

        Args:
            notes: Notes to quantize (any Note subclass)

        Returns:
            New notes of the same type
        """
        return [
            replace(
                note,
                start_beat=self._snap_to_grid(note.start_beat),
                duration=max(self.grid, self._snap_to_grid(note.duration)),
            )
            for note in notes
        ]

    def _snap_to_grid(self, beats: float) -> float:
        """Snap a beat value to the nearest grid position."""
        return float(np.floor(beats / self.grid + 0.5)) * self.grid
