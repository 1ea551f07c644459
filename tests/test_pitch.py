"""Tests for McLeod pitch detection (offline and real-time)."""

import pytest
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from harmony_coach.analysis import (
    PitchDetector,
    PitchDetectionConfig,
    RealtimePitchDetector,
    McLeodEstimator,
)
from harmony_coach.analysis.pitch import pitch_frame_size


# ============================================================================
# Test Fixtures - Helper functions to create test audio
# ============================================================================

def generate_sine_wave(freq: float, duration: float, sr: int = 44100, amplitude: float = 0.8) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.arange(int(sr * duration)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def generate_white_noise(duration: float, sr: int = 44100, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.standard_normal(int(sr * duration)) * 0.3


# ============================================================================
# Estimator
# ============================================================================

class TestMcLeodEstimator:
    """Single-frame estimates."""

    def test_frame_size_for_common_rates(self):
        assert pitch_frame_size(44100) == 2048
        assert pitch_frame_size(22050) == 1024

    @pytest.mark.parametrize("freq", [110.0, 220.0, 440.0, 659.25])
    def test_sine_frequencies(self, freq):
        sr = 44100
        estimator = McLeodEstimator(2048)
        frame = generate_sine_wave(freq, 2048 / sr + 0.01, sr)[:2048]
        detected, clarity = estimator.find_pitch(frame, sr)
        assert detected == pytest.approx(freq, rel=0.01)
        assert clarity > 0.9

    def test_silence_has_no_pitch(self):
        estimator = McLeodEstimator(2048)
        assert estimator.find_pitch(np.zeros(2048), 44100) == (0.0, 0.0)

    def test_wrong_frame_length(self):
        estimator = McLeodEstimator(1024)
        with pytest.raises(ValueError):
            estimator.find_pitch(np.zeros(2048), 44100)

    def test_clarity_is_clamped(self):
        estimator = McLeodEstimator(2048)
        _, clarity = estimator.find_pitch(generate_sine_wave(440.0, 0.05)[:2048], 44100)
        assert 0.0 <= clarity <= 1.0


# ============================================================================
# Offline Detector
# ============================================================================

class TestPitchDetector:
    """Whole-buffer detection."""

    def test_a440_sine(self):
        sr = 44100
        frames = PitchDetector().detect(generate_sine_wave(440.0, 2.0, sr), sr)

        assert len(frames) == 1 + (2 * sr - 2048) // 441
        voiced = [f for f in frames if f.is_voiced]
        assert len(voiced) == len(frames)
        for frame in voiced:
            assert frame.note == "A"
            assert frame.octave == 4
            assert frame.clarity > 0.8
            assert abs(frame.frequency - 440.0) < 3.0
            assert abs(frame.cents_off) <= 10

    def test_timestamps_follow_hop(self):
        sr = 44100
        frames = PitchDetector().detect(generate_sine_wave(440.0, 0.5, sr), sr)
        assert frames[0].timestamp == 0.0
        assert frames[1].timestamp == pytest.approx(10.0)
        assert all(b.timestamp > a.timestamp for a, b in zip(frames, frames[1:]))

    def test_silence_gives_silent_frames(self):
        sr = 22050
        frames = PitchDetector().detect(np.zeros(sr), sr)
        assert frames
        for frame in frames:
            assert frame.note is None
            assert frame.octave is None
            assert frame.frequency == 0.0

    def test_out_of_range_frequency_rejected(self):
        sr = 44100
        detector = PitchDetector()
        low = detector.detect(generate_sine_wave(60.0, 0.5, sr), sr)
        high = detector.detect(generate_sine_wave(1500.0, 0.5, sr), sr)
        assert not any(f.is_voiced for f in low)
        assert not any(f.is_voiced for f in high)

    def test_noise_is_mostly_unvoiced(self):
        sr = 44100
        frames = PitchDetector().detect(generate_white_noise(1.0, sr), sr)
        voiced = sum(1 for f in frames if f.is_voiced)
        assert voiced <= len(frames) * 0.1

    def test_short_buffer_warns(self):
        with pytest.warns(UserWarning):
            frames = PitchDetector().detect(np.zeros(100), 44100)
        assert frames == []

    def test_rejects_multichannel(self):
        with pytest.raises(ValueError):
            PitchDetector().detect(np.zeros((2, 44100)), 44100)

    def test_rejects_bad_sample_rate(self):
        with pytest.raises(ValueError):
            PitchDetector().detect(np.zeros(44100), 0)

    def test_detect_frame(self):
        sr = 44100
        frame = PitchDetector().detect_frame(generate_sine_wave(220.0, 0.05, sr), sr, timestamp=42.0)
        assert (frame.note, frame.octave) == ("A", 3)
        assert frame.timestamp == 42.0


class TestPitchDetectionConfig:
    """Config validation."""

    def test_defaults(self):
        config = PitchDetectionConfig()
        assert config.clarity_threshold == 0.8
        assert (config.min_frequency, config.max_frequency) == (80.0, 1200.0)

    def test_invalid_range(self):
        with pytest.raises(ValueError):
            PitchDetectionConfig(min_frequency=500.0, max_frequency=100.0)

    def test_invalid_clarity(self):
        with pytest.raises(ValueError):
            PitchDetectionConfig(clarity_threshold=1.5)

    def test_accepts(self):
        config = PitchDetectionConfig()
        assert config.accepts(440.0, 0.9)
        assert not config.accepts(440.0, 0.5)
        assert not config.accepts(50.0, 0.99)


# ============================================================================
# Real-time Detector
# ============================================================================

class TestRealtimePitchDetector:
    """Pull-based detection from a live buffer."""

    def test_reads_source_each_call(self):
        sr = 44100
        wave = generate_sine_wave(440.0, 0.1, sr)
        calls = []

        def source(buffer):
            calls.append(1)
            buffer[:] = wave[:len(buffer)]

        ticks = iter([10.0, 11.5])
        detector = RealtimePitchDetector(source, buffer_size=2048, sr=sr, clock=lambda: next(ticks))
        frame = detector()

        assert len(calls) == 1
        assert (frame.note, frame.octave) == ("A", 4)
        assert frame.timestamp == pytest.approx(1500.0)
        assert detector.last_frame is frame

    def test_default_clarity_threshold(self):
        detector = RealtimePitchDetector(lambda b: None, buffer_size=1024, sr=22050)
        assert detector.config.clarity_threshold == 0.75

    def test_silent_source(self):
        detector = RealtimePitchDetector(lambda b: None, buffer_size=1024, sr=22050)
        frame = detector()
        assert not frame.is_voiced

    def test_timestamps_start_at_creation(self):
        ticks = iter([100.0, 100.0, 100.25])
        detector = RealtimePitchDetector(lambda b: None, buffer_size=1024, sr=22050, clock=lambda: next(ticks))
        assert detector().timestamp == 0.0
        assert detector().timestamp == pytest.approx(250.0)
