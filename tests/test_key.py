"""Tests for Krumhansl-Schmuckler key detection."""

import pytest
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from harmony_coach.core import Key, Note, PitchFrame, PITCH_NAMES
from harmony_coach.inference import KeyDetector, pearson_correlation
from harmony_coach.theory import MAJOR_KEY_PROFILE, MINOR_KEY_PROFILE, rotate_array


# ============================================================================
# Test Fixtures - Helper functions to create test data
# ============================================================================

def make_frames(counts: dict, clarity: float = 0.9) -> list:
    """Voiced pitch frames: ``counts`` maps note name -> number of frames."""
    frames = []
    t = 0.0
    for name, count in counts.items():
        for _ in range(count):
            frames.append(PitchFrame(
                frequency=440.0,
                clarity=clarity,
                note=name,
                octave=4,
                cents_off=0,
                timestamp=t,
            ))
            t += 10.0
    return frames


def create_scale_notes(root: str, mode: str, octave: int = 4, duration: float = 1.0) -> list:
    """One note per scale degree plus a long tonic."""
    intervals = [0, 2, 4, 5, 7, 9, 11] if mode == "major" else [0, 2, 3, 5, 7, 8, 10]
    base = (octave + 1) * 12 + PITCH_NAMES.index(root)
    notes = [
        Note.from_midi(base + interval, start_beat=i * duration, duration=duration)
        for i, interval in enumerate(intervals)
    ]
    notes.append(Note.from_midi(base, start_beat=len(intervals) * duration, duration=4 * duration))
    return notes


C_MAJOR_WEIGHTED = {"C": 5, "D": 2, "E": 3, "F": 2, "G": 4, "A": 2, "B": 1}


# ============================================================================
# Correlation
# ============================================================================

class TestPearson:
    """Pearson correlation helper."""

    def test_identical(self):
        x = np.array([1.0, 2.0, 3.0, 5.0])
        assert pearson_correlation(x, x) == pytest.approx(1.0)

    def test_inverse(self):
        x = np.array([1.0, 2.0, 3.0])
        assert pearson_correlation(x, -x) == pytest.approx(-1.0)

    def test_zero_variance_is_zero(self):
        assert pearson_correlation(np.zeros(12), MAJOR_KEY_PROFILE) == 0.0
        assert pearson_correlation(np.full(12, 3.0), MAJOR_KEY_PROFILE) == 0.0


# ============================================================================
# Key Detection
# ============================================================================

class TestKeyDetector:
    """Key detection from histograms, frames and notes."""

    def test_profile_shaped_histograms(self):
        detector = KeyDetector()
        g_major = detector.detect(rotate_array(MAJOR_KEY_PROFILE, 7))
        assert g_major.key == Key("G", "major")
        assert g_major.confidence == pytest.approx(1.0)

        a_minor = detector.detect(rotate_array(MINOR_KEY_PROFILE, 9))
        assert a_minor.key == Key("A", "minor")

    def test_c_major_from_frames(self):
        info = KeyDetector().detect_from_frames(make_frames(C_MAJOR_WEIGHTED))
        assert info.key == Key("C", "major")
        assert info.confidence > 0.7
        assert info.pitch_class_distribution.sum() == pytest.approx(1.0)

    def test_silent_frames_ignored(self):
        frames = make_frames(C_MAJOR_WEIGHTED) + [PitchFrame.silent(0.1, 1000.0)] * 50
        assert KeyDetector().detect_from_frames(frames).key == Key("C", "major")

    def test_histogram_is_clarity_weighted(self):
        frames = make_frames({"C": 1}, clarity=0.5) + make_frames({"G": 1}, clarity=1.0)
        histogram = KeyDetector.build_histogram(frames)
        assert histogram[0] == pytest.approx(1 / 3)
        assert histogram[7] == pytest.approx(2 / 3)

    def test_scale_notes(self):
        info = KeyDetector().detect_from_notes(create_scale_notes("D", "major"))
        assert info.key == Key("D", "major")

    def test_empty_histogram_defaults_to_c_major(self):
        info = KeyDetector().detect(np.zeros(12))
        assert info.key == Key("C", "major")
        assert info.confidence == 0.0
        # Ties keep generation order: C major, C minor, C# major, ...
        assert [c.name for c in info.correlations[:3]] == ["C major", "C minor", "C# major"]

    def test_empty_frames(self):
        info = KeyDetector().detect_from_frames([])
        assert info.key == Key("C", "major")
        assert info.confidence == 0.0

    def test_all_24_candidates_sorted(self):
        info = KeyDetector().detect_from_frames(make_frames(C_MAJOR_WEIGHTED))
        correlations = [c.correlation for c in info.correlations]
        assert len(correlations) == 24
        assert correlations == sorted(correlations, reverse=True)

    def test_rejects_bad_histogram(self):
        with pytest.raises(ValueError):
            KeyDetector().detect(np.zeros(7))

    def test_rejects_bad_profile(self):
        with pytest.raises(ValueError):
            KeyDetector(major_profile=[1.0, 2.0])
