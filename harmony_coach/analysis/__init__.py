"""Analysis layer - Low-level signal analysis.

This layer turns raw samples into time series:
- Pitch detection (offline and real-time)
- Same-note segmentation of pitch frames
- Tempo estimation from onset intervals
"""

from .pitch import (
    PitchDetector,
    PitchDetectionConfig,
    RealtimePitchDetector,
    McLeodEstimator,
)
from .segments import NoteSegment, group_into_segments
from .tempo import TempoAnalyzer, TempoInfo

__all__ = [
    "PitchDetector",
    "PitchDetectionConfig",
    "RealtimePitchDetector",
    "McLeodEstimator",
    "NoteSegment",
    "group_into_segments",
    "TempoAnalyzer",
    "TempoInfo",
]
