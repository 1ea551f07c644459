"""Tests for chroma extraction, chord template matching and smoothing."""

import pytest
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from harmony_coach.core import Note
from harmony_coach.inference import (
    ChordRecognizer,
    ChordRecognizerConfig,
    ChordDetection,
    cosine_similarity,
    detections_to_chords,
)
from harmony_coach.theory import chord_chroma_template, midi_to_frequency, note_to_midi


# ============================================================================
# Test Fixtures - Helper functions to create test data
# ============================================================================

def generate_chord_audio(midi_notes, duration: float, sr: int = 22050) -> np.ndarray:
    """Sum of equal-amplitude sines, one per MIDI note."""
    t = np.arange(int(sr * duration)) / sr
    audio = sum(np.sin(2 * np.pi * midi_to_frequency(m) * t) for m in midi_notes)
    return audio / len(midi_notes)


def triad_chroma(*names) -> np.ndarray:
    chroma = np.zeros(12)
    for name in names:
        chroma[note_to_midi(name, 4) % 12] = 1.0
    return chroma


def detection(symbol_root: str, quality: str, symbol: str, confidence: float, start: float, end: float):
    return ChordDetection(
        root=symbol_root,
        quality=quality,
        symbol=symbol,
        confidence=confidence,
        start_time=start,
        end_time=end,
    )


def block_chord(root_midi: int, intervals, start: float, duration: float):
    return [Note.from_midi(root_midi + i, start_beat=start, duration=duration) for i in intervals]


# ============================================================================
# Template Matching
# ============================================================================

class TestTemplateMatching:
    """Cosine similarity against the 84-template bank."""

    def test_cosine_similarity_exact_match(self):
        template = chord_chroma_template("C", "major")
        assert cosine_similarity(triad_chroma("C", "E", "G"), template) == pytest.approx(1.0)

    def test_cosine_similarity_zero_vector(self):
        assert cosine_similarity(np.zeros(12), chord_chroma_template("C", "major")) == 0.0

    def test_exact_triad_beats_every_other_template(self):
        recognizer = ChordRecognizer()
        scores = recognizer.similarities(triad_chroma("C", "E", "G"))[0]
        assert scores[0] == pytest.approx(1.0)
        assert np.all(scores[1:] < 1.0 - 1e-9)

    @pytest.mark.parametrize("names,symbol", [
        (("A", "C", "E"), "Am"),
        (("G", "B", "D"), "G"),
        (("B", "D", "F"), "Bdim"),
        (("C", "E", "G#"), "Caug"),
    ])
    def test_match_triads(self, names, symbol):
        template, score = ChordRecognizer().match(triad_chroma(*names))
        assert template.symbol == symbol
        assert score == pytest.approx(1.0)

    def test_zero_chroma_matches_first_template_with_zero_score(self):
        template, score = ChordRecognizer().match(np.zeros(12))
        assert template.symbol == "C"
        assert score == 0.0


# ============================================================================
# Chroma
# ============================================================================

class TestChroma:
    """Goertzel-style chroma."""

    def test_silent_frame_is_zero(self):
        chroma = ChordRecognizer().compute_chroma(np.zeros(8192), 22050)
        assert chroma.shape == (12,)
        assert np.all(chroma == 0)

    def test_single_tone_peaks_at_its_pitch_class(self):
        sr = 22050
        frame = generate_chord_audio([69], 8192 / sr + 0.01, sr)[:8192] * np.hanning(8192)
        chroma = ChordRecognizer().compute_chroma(frame, sr)
        assert int(np.argmax(chroma)) == 9
        assert chroma.max() == pytest.approx(1.0)

    def test_chromagram_shape(self):
        sr = 22050
        audio = generate_chord_audio([60, 64, 67], 2.0, sr)
        chroma = ChordRecognizer().chromagram(audio, sr)
        assert chroma.shape == (1 + (len(audio) - 8192) // 4096, 12)

    def test_short_buffer_gives_no_frames(self):
        recognizer = ChordRecognizer()
        assert recognizer.chromagram(np.zeros(1000), 22050).shape == (0, 12)
        assert recognizer.detect(np.zeros(1000), 22050) == []


# ============================================================================
# Detection and Smoothing
# ============================================================================

class TestChordDetection:
    """Whole-buffer detection."""

    def test_c_major_triad_audio(self):
        sr = 22050
        audio = generate_chord_audio([60, 64, 67], 3.0, sr)
        detections = ChordRecognizer().detect(audio, sr)

        assert len(detections) == 1
        assert detections[0].symbol == "C"
        assert detections[0].start_time == 0.0
        assert detections[0].confidence > 0.9

    def test_two_chords_in_sequence(self):
        sr = 22050
        audio = np.concatenate([
            generate_chord_audio([57, 60, 64], 2.0, sr),  # A minor
            generate_chord_audio([55, 59, 62], 2.0, sr),  # G major
        ])
        symbols = [d.symbol for d in ChordRecognizer().detect(audio, sr)]
        assert symbols[0] == "Am"
        assert symbols[-1] == "G"

    def test_silence_yields_nothing(self):
        sr = 22050
        assert ChordRecognizer().detect(np.zeros(sr * 2), sr) == []


class TestSmoothing:
    """Merging of consecutive frames."""

    def test_merges_identical_symbols(self):
        raw = [
            detection("C", "major", "C", 0.9, 0.0, 0.4),
            detection("C", "major", "C", 0.95, 0.2, 0.6),
            detection("G", "major", "G", 0.8, 0.4, 0.8),
        ]
        smoothed = ChordRecognizer().smooth(raw)
        assert [d.symbol for d in smoothed] == ["C", "G"]
        assert smoothed[0].end_time == 0.6
        assert smoothed[0].confidence == 0.95

    def test_low_confidence_frames_are_skipped(self):
        raw = [
            detection("C", "major", "C", 0.9, 0.0, 0.4),
            detection("A", "minor", "Am", 0.3, 0.2, 0.6),
            detection("C", "major", "C", 0.9, 0.4, 0.8),
        ]
        smoothed = ChordRecognizer().smooth(raw)
        assert len(smoothed) == 1
        assert smoothed[0].symbol == "C"
        assert smoothed[0].end_time == 0.8

    def test_does_not_mutate_input(self):
        raw = [
            detection("C", "major", "C", 0.9, 0.0, 0.4),
            detection("C", "major", "C", 0.9, 0.2, 0.6),
        ]
        ChordRecognizer().smooth(raw)
        assert raw[0].end_time == 0.4

    def test_everything_below_threshold(self):
        raw = [detection("C", "major", "C", 0.2, 0.0, 0.4)]
        assert ChordRecognizer().smooth(raw) == []


class TestSymbolicChords:
    """Chords inferred from sounding notes."""

    def test_block_chords(self):
        notes = (
            block_chord(60, [0, 4, 7], start=0.0, duration=1.0)      # C
            + block_chord(55, [0, 4, 7], start=1.0, duration=1.0)  # G
            + block_chord(55, [0, 4, 7], start=2.0, duration=1.0)  # G
        )
        chords = ChordRecognizer().detect_from_notes(notes)

        assert [c.symbol for c in chords] == ["C", "G"]
        assert chords[1].start_beat == 1.0
        assert chords[1].duration == 2.0

    def test_empty_notes(self):
        assert ChordRecognizer().detect_from_notes([]) == []

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            ChordRecognizer().detect_from_notes([Note.from_midi(60)], window_beats=0)


class TestConversion:
    """Seconds to beats."""

    def test_detections_to_chords(self):
        chords = detections_to_chords([detection("F", "major", "F", 0.9, 1.0, 3.0)], tempo=120.0)
        assert len(chords) == 1
        assert chords[0].start_beat == pytest.approx(2.0)
        assert chords[0].duration == pytest.approx(4.0)
        assert chords[0].notes == ("F", "A", "C")

    def test_rejects_bad_tempo(self):
        with pytest.raises(ValueError):
            detections_to_chords([], tempo=0.0)


class TestConfig:
    """ChordRecognizerConfig validation."""

    def test_defaults(self):
        config = ChordRecognizerConfig()
        assert (config.frame_size, config.hop_size) == (8192, 4096)
        assert config.min_confidence == 0.5

    @pytest.mark.parametrize("kwargs", [
        {"frame_size": 0},
        {"hop_size": -1},
        {"min_confidence": 1.5},
        {"smoothing_window": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ChordRecognizerConfig(**kwargs)

    def test_recognizer_kwargs(self):
        recognizer = ChordRecognizer(frame_size=4096, hop_size=1024)
        assert recognizer.config.frame_size == 4096
        assert len(recognizer.templates) == 84
