"""Tests for the EAR layer — loop fitting, harmonic analysis, pitch detection."""

from __future__ import annotations

import numpy as np
import pytest

from padsynth.ear.pitch import detect_period
from padsynth.ear.spectral import LoopRegion, analyze_loop, find_loop
from padsynth.errors import AnalysisError


# ── Helpers ──────────────────────────────────────────────


def _tone(freq: float, sr: int = 10000, seconds: float = 1.0, amp: float = 0.8) -> np.ndarray:
    n = np.arange(int(sr * seconds))
    return amp * np.sin(2 * np.pi * freq * n / sr)


def _rich_tone(freq: float, sr: int, seconds: float = 1.0) -> np.ndarray:
    n = np.arange(int(sr * seconds))
    return sum(
        amp * np.sin(2 * np.pi * h * freq * n / sr)
        for h, amp in ((1, 1.0), (2, 0.5), (3, 0.25))
    )


# ── Loop fitting ─────────────────────────────────────────


def test_find_loop_whole_periods():
    """As many whole periods as fit after the loop begin."""
    loop = find_loop(10000, 10000, loop_begin=48, period=100.0)
    assert loop == LoopRegion(start=48, period=100.0, periods=99)
    assert loop.length == 9900
    assert loop.stop == 9948


def test_find_loop_respects_loop_end():
    loop = find_loop(10000, 10000, loop_begin=0, loop_end=1050, period=100.0)
    assert loop.periods == 10
    assert loop.stop <= 1050


def test_find_loop_fractional_period():
    loop = find_loop(10000, 10000, loop_begin=0, period=38.5)
    assert loop.periods == 259
    assert loop.length == round(38.5 * 259)
    assert loop.stop <= 10000


@pytest.mark.parametrize(
    "loop_begin,loop_end",
    [(10000, None), (12000, None), (0, 10001), (500, 500), (600, 500)],
)
def test_find_loop_out_of_bounds(loop_begin, loop_end):
    with pytest.raises(AnalysisError):
        find_loop(10000, 10000, loop_begin=loop_begin, loop_end=loop_end, period=100.0)


def test_find_loop_shorter_than_one_period():
    with pytest.raises(AnalysisError, match="shorter than one period"):
        find_loop(10000, 10000, loop_begin=9500, period=1000.0)


@pytest.mark.parametrize("period", [0.0, -5.0, float("nan"), float("inf")])
def test_find_loop_rejects_bad_period(period):
    with pytest.raises(AnalysisError):
        find_loop(10000, 10000, loop_begin=0, period=period)


# ── Harmonic analysis ────────────────────────────────────


def test_pure_tone_single_harmonic():
    """A sine at the stated pitch puts all its power in harmonic 1."""
    spectrum = analyze_loop(_tone(100.0), 10000, loop_begin=48, pitch_hz=100.0)

    assert spectrum.reference_hz == pytest.approx(100.0)
    assert spectrum.loop.periods == 99
    # Normalized one-sided FFT: amplitude A shows up as A/2
    assert spectrum.harmonics[0].magnitude == pytest.approx(0.4, abs=1e-9)
    assert all(h.magnitude < 1e-9 for h in spectrum.harmonics[1:])


def test_harmonics_ascending_and_numbered():
    spectrum = analyze_loop(_tone(100.0), 10000, loop_begin=0, pitch_hz=100.0)
    numbers = [h.number for h in spectrum.harmonics]
    freqs = [h.frequency for h in spectrum.harmonics]

    assert numbers == list(range(1, len(numbers) + 1))
    assert all(b > a for a, b in zip(freqs, freqs[1:]))
    assert freqs[0] == pytest.approx(100.0)
    # Bands run up to the source Nyquist
    assert len(spectrum.harmonics) == 50


def test_rich_tone_relative_magnitudes():
    spectrum = analyze_loop(_rich_tone(125.0, 8000), 8000, loop_begin=0, pitch_hz=125.0)
    mags = [h.magnitude for h in spectrum.harmonics[:4]]

    assert mags[0] == pytest.approx(0.5, abs=1e-9)
    assert mags[1] == pytest.approx(0.25, abs=1e-9)
    assert mags[2] == pytest.approx(0.125, abs=1e-9)
    assert mags[3] == pytest.approx(0.0, abs=1e-9)
    assert spectrum.energy == pytest.approx(0.25 + 0.0625 + 0.015625, rel=1e-9)


def test_detune_scales_harmonic_frequencies():
    plain = analyze_loop(_tone(100.0), 10000, loop_begin=0, pitch_hz=100.0)
    up = analyze_loop(_tone(100.0), 10000, loop_begin=0, pitch_hz=100.0, detune_cents=1200.0)

    assert up.reference_hz == pytest.approx(plain.reference_hz)
    assert up.detune_ratio == pytest.approx(2.0)
    for a, b in zip(plain.harmonics, up.harmonics):
        assert b.frequency == pytest.approx(2.0 * a.frequency)
        assert b.magnitude == pytest.approx(a.magnitude)


def test_analyze_detects_pitch_when_omitted():
    spectrum = analyze_loop(_tone(100.0), 10000, loop_begin=48)
    assert spectrum.reference_hz == pytest.approx(100.0, rel=1e-3)
    assert spectrum.harmonics[0].magnitude > 0.39


def test_analyze_rejects_stereo():
    stereo = np.zeros((1000, 2))
    with pytest.raises(AnalysisError, match="mono"):
        analyze_loop(stereo, 10000, loop_begin=0, pitch_hz=100.0)


def test_spectrum_to_dict():
    spectrum = analyze_loop(_tone(100.0), 10000, loop_begin=0, pitch_hz=100.0)
    d = spectrum.to_dict()
    assert d["loop"]["periods"] == spectrum.loop.periods
    assert len(d["harmonics"]) == len(spectrum.harmonics)
    assert d["harmonics"][0][0] == 1


# ── Pitch detection ──────────────────────────────────────


def test_detect_period_pure_tone():
    assert detect_period(_tone(100.0), 10000) == pytest.approx(100.0, abs=0.01)


def test_detect_period_rich_tone():
    """Overtones must not pull the estimate to a sub-multiple of the period."""
    assert detect_period(_rich_tone(125.0, 8000), 8000) == pytest.approx(64.0, abs=0.05)


def test_detect_period_fractional():
    period = detect_period(_tone(261.63, sr=44100, seconds=0.5), 44100)
    assert period == pytest.approx(44100 / 261.63, rel=1e-3)


def test_detect_period_uses_window():
    """Only samples after the loop begin are considered."""
    sr = 10000
    audio = np.concatenate([_tone(400.0, sr, 0.5), _tone(100.0, sr, 0.5)])
    assert detect_period(audio, sr, start=5000) == pytest.approx(100.0, abs=0.05)


def test_detect_period_silence():
    with pytest.raises(AnalysisError, match="silent"):
        detect_period(np.zeros(10000), 10000)


def test_detect_period_noise_is_degenerate():
    noise = np.random.default_rng(0).standard_normal(10000)
    with pytest.raises(AnalysisError, match="degenerate"):
        detect_period(noise, 10000)


def test_detect_period_too_short():
    with pytest.raises(AnalysisError, match="too short"):
        detect_period(_tone(100.0)[:3], 10000)
