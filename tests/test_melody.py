"""Tests for melody extraction, quantization and tempo estimation."""

import pytest
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from harmony_coach.core import MelodyNote, Note, PitchFrame
from harmony_coach.analysis import TempoAnalyzer, group_into_segments
from harmony_coach.inference import MelodyExtractor, extract_top_line
from harmony_coach.processing import Quantizer
from harmony_coach.theory import midi_to_frequency, note_to_midi


# ============================================================================
# Test Fixtures - Helper functions to create test data
# ============================================================================

def voiced(name: str, octave: int, timestamp: float, clarity: float = 0.9, cents: int = 0) -> PitchFrame:
    freq = midi_to_frequency(note_to_midi(name, octave) + cents / 100.0)
    return PitchFrame(
        frequency=freq,
        clarity=clarity,
        note=name,
        octave=octave,
        cents_off=cents,
        timestamp=timestamp,
    )


def silent(timestamp: float) -> PitchFrame:
    return PitchFrame.silent(0.1, timestamp)


def note_run(name: str, octave: int, start: float, length_ms: float, hop: float = 10.0) -> list:
    """Voiced frames from ``start`` to ``start + length_ms`` inclusive, then one silent frame."""
    count = int(round(length_ms / hop)) + 1
    frames = [voiced(name, octave, start + i * hop) for i in range(count)]
    frames.append(silent(start + count * hop))
    return frames


def onset_sequence(ioi_ms: float, count: int, length_ms: float = 100.0) -> list:
    """``count`` notes with onsets every ``ioi_ms``, alternating C4/D4."""
    frames = []
    for i in range(count):
        name = "C" if i % 2 == 0 else "D"
        frames.extend(note_run(name, 4, i * ioi_ms, length_ms))
    return frames


def melody_note(midi: int, start: float, duration: float) -> MelodyNote:
    note = Note.from_midi(midi, start_beat=start, duration=duration)
    return MelodyNote(
        name=note.name,
        octave=note.octave,
        midi_number=midi,
        duration=duration,
        start_beat=start,
    )


# ============================================================================
# Segmentation
# ============================================================================

class TestSegments:
    """Same-note grouping."""

    def test_groups_by_note_and_octave(self):
        frames = [
            voiced("A", 4, 0.0), voiced("A", 4, 10.0),
            voiced("A", 5, 20.0),
            silent(30.0),
            voiced("A", 5, 40.0),
        ]
        segments = group_into_segments(frames)
        assert [(s.note, s.octave) for s in segments] == [("A", 4), ("A", 5), ("A", 5)]
        assert segments[0].duration_ms == 10.0
        assert len(segments[0].frames) == 2

    def test_averages(self):
        frames = [voiced("A", 4, 0.0, clarity=0.8), voiced("A", 4, 10.0, clarity=1.0)]
        segment = group_into_segments(frames)[0]
        assert segment.avg_clarity == pytest.approx(0.9)
        assert segment.avg_frequency == pytest.approx(440.0)


# ============================================================================
# Melody Extraction
# ============================================================================

class TestMelodyExtractor:
    """Frames to MelodyNotes."""

    def test_single_note(self):
        timestamps = np.linspace(0.0, 120.0, 10)
        frames = [voiced("A", 4, t) for t in timestamps]
        frames += [silent(130.0 + 10 * i) for i in range(5)]

        melody = MelodyExtractor().extract(frames, tempo=120.0)

        assert len(melody) == 1
        note = melody[0]
        assert (note.name, note.octave, note.midi_number) == ("A", 4, 69)
        assert note.start_beat == 0.0
        assert note.duration == pytest.approx(120.0 / 500.0)
        assert note.confidence == pytest.approx(0.9)
        assert note.measured_frequency == pytest.approx(440.0)
        assert note.chord_tone is None

    def test_short_segment_dropped(self):
        frames = [voiced("C", 5, 0.0), voiced("C", 5, 10.0), voiced("C", 5, 20.0), silent(30.0)]
        assert MelodyExtractor().extract(frames, tempo=120.0) == []

    def test_min_duration_is_configurable(self):
        frames = [voiced("C", 5, 0.0), voiced("C", 5, 10.0), voiced("C", 5, 20.0), silent(30.0)]
        assert len(MelodyExtractor(min_duration_ms=10.0).extract(frames, tempo=120.0)) == 1

    def test_beats_follow_tempo(self):
        frames = note_run("E", 4, 0.0, 200.0) + note_run("G", 4, 500.0, 200.0)
        melody = MelodyExtractor().extract(frames, tempo=60.0)
        assert [n.name for n in melody] == ["E", "G"]
        assert melody[1].start_beat == pytest.approx(0.5)
        assert melody[1].duration == pytest.approx(0.2)

    def test_rejects_bad_tempo(self):
        with pytest.raises(ValueError):
            MelodyExtractor().extract([], tempo=0.0)

    def test_no_frames(self):
        assert MelodyExtractor().extract([], tempo=120.0) == []


class TestTopLine:
    """Skyline melody from polyphonic notes."""

    def test_highest_note_per_onset(self):
        notes = [
            Note.from_midi(60, 0.0, 1.0), Note.from_midi(64, 0.0, 1.0), Note.from_midi(67, 0.0, 1.0),
            Note.from_midi(57, 1.0, 1.0), Note.from_midi(65, 1.03, 1.0),
        ]
        top = extract_top_line(notes)
        assert [n.midi_number for n in top] == [67, 65]

    def test_sorted_by_start(self):
        notes = [Note.from_midi(72, 2.0, 1.0), Note.from_midi(60, 0.0, 1.0)]
        assert [n.start_beat for n in extract_top_line(notes)] == [0.0, 2.0]

    def test_invalid_resolution(self):
        with pytest.raises(ValueError):
            extract_top_line([], resolution=0.0)


# ============================================================================
# Quantization
# ============================================================================

class TestQuantizer:
    """Snapping to the sixteenth-note grid."""

    def test_snaps_start_and_duration(self):
        quantized = Quantizer().quantize([melody_note(60, 0.26, 0.49)])[0]
        assert quantized.start_beat == 0.25
        assert quantized.duration == 0.5

    def test_duration_never_zero(self):
        quantized = Quantizer().quantize([melody_note(60, 0.1, 0.05)])[0]
        assert quantized.start_beat == 0.0
        assert quantized.duration == 0.25

    def test_half_grid_rounds_up(self):
        quantized = Quantizer().quantize([melody_note(60, 0.125, 0.375)])[0]
        assert quantized.start_beat == 0.25
        assert quantized.duration == 0.5

    def test_preserves_type_and_fields(self):
        note = MelodyNote(
            name="A", octave=4, midi_number=69, duration=0.3, start_beat=1.1,
            chord_tone="third", confidence=0.8,
        )
        quantized = Quantizer().quantize([note])[0]
        assert isinstance(quantized, MelodyNote)
        assert quantized.chord_tone == "third"
        assert quantized.confidence == 0.8

    def test_custom_subdivision(self):
        quantized = Quantizer(subdivision=2).quantize([melody_note(60, 0.3, 0.3)])[0]
        assert quantized.start_beat == 0.5
        assert quantized.duration == 0.5

    def test_invalid_subdivision(self):
        with pytest.raises(ValueError):
            Quantizer(subdivision=0)


# ============================================================================
# Tempo
# ============================================================================

class TestTempoAnalyzer:
    """Median inter-onset tempo estimate."""

    def test_too_few_segments_defaults(self):
        info = TempoAnalyzer().analyze(onset_sequence(500.0, 2))
        assert info.bpm == 120.0
        assert info.is_default

    def test_no_frames_defaults(self):
        assert TempoAnalyzer().estimate([]) == 120.0

    def test_regular_onsets(self):
        assert TempoAnalyzer().estimate(onset_sequence(500.0, 6)) == 120.0
        assert TempoAnalyzer().estimate(onset_sequence(400.0, 6)) == 150.0

    def test_slow_tempo_doubled(self):
        # 1200ms IOI = 50 BPM -> 100 BPM
        assert TempoAnalyzer().estimate(onset_sequence(1200.0, 4)) == 100.0

    def test_fast_tempo_halved(self):
        # 250ms IOI = 240 BPM -> 120 BPM
        assert TempoAnalyzer().estimate(onset_sequence(250.0, 8)) == 120.0

    def test_intervals_outside_window_ignored(self):
        # 120ms onsets are all below the 150ms floor
        info = TempoAnalyzer().analyze(onset_sequence(120.0, 8, length_ms=60.0))
        assert info.is_default
        assert len(info.inter_onset_intervals) == 0

    def test_median_of_mixed_intervals(self):
        frames = []
        for start in (0.0, 600.0, 1200.0, 1700.0, 2300.0):
            frames.extend(note_run("C", 4, start, 100.0))
        # IOIs 600, 600, 500, 600 -> median 600ms = 100 BPM
        assert TempoAnalyzer().estimate(frames) == 100.0

    def test_rounds_to_integer(self):
        # 700ms = 85.71 BPM
        assert TempoAnalyzer().estimate(onset_sequence(700.0, 5)) == 86.0

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            TempoAnalyzer(min_bpm=100.0, max_bpm=150.0)
