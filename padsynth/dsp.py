"""Shared numeric helpers — unit conversions, real FFTs, seeded streams.

Everything here works in float64 and is free of hidden state, so the
pipeline stays bit-reproducible for a given seed.
"""

from __future__ import annotations

from typing import Any

import librosa
import numpy as np
import numpy.typing as npt
from numpy.typing import NDArray
from scipy import fft

# SeedSequence spawn keys: one stream for the profile, one per chord note.
PROFILE_STREAM = 0
NOTE_STREAM = 1


# ── Unit Conversions ─────────────────────────────────────


def midi_to_hz(note: int) -> float:
    """MIDI note number to frequency (A4 = 69 = 440 Hz)."""
    return float(librosa.midi_to_hz(note))


def cents_to_ratio(cents: float) -> float:
    """Frequency multiplier for a detune in cents."""
    return float(2.0 ** (cents / 1200.0))


def power_to_ampl(power: float) -> float:
    return float(np.sqrt(power))


def db_to_ampl(db: float) -> float:
    return float(10.0 ** (db / 20.0))


# ── Spectra ──────────────────────────────────────────────


def rfft_normalized(data: npt.ArrayLike) -> NDArray[np.complex128]:
    """Real FFT scaled by 1/N, so bin power does not depend on window length."""
    x = np.asarray(data, dtype=np.float64)
    return fft.rfft(x) / len(x)


def irfft(spectrum: NDArray[np.complex128], n: int) -> NDArray[np.float64]:
    return fft.irfft(spectrum, n=n)


def root_sum_power(bins: NDArray[np.complexfloating[Any, Any]]) -> float:
    """Total power of several FFT bins, as the equivalent amplitude."""
    return float(np.sqrt(np.sum(np.abs(bins) ** 2)))


def rms(data: NDArray[np.float64]) -> float:
    return float(np.sqrt(np.mean(data**2))) if len(data) else 0.0


def peak(data: NDArray[np.float64]) -> float:
    return float(np.max(np.abs(data))) if len(data) else 0.0


# ── Random Streams ───────────────────────────────────────


def profile_rng(seed: int) -> np.random.Generator:
    """Generator used while building the harmonic profile."""
    seq = np.random.SeedSequence(seed, spawn_key=(PROFILE_STREAM,))
    return np.random.Generator(np.random.PCG64(seq))


def note_rng(seed: int, index: int) -> np.random.Generator:
    """Independent generator for chord note `index`.

    Derived only from (seed, index), so rendering order and the other
    notes of the chord never change what a note draws.
    """
    seq = np.random.SeedSequence(seed, spawn_key=(NOTE_STREAM, index))
    return np.random.Generator(np.random.PCG64(seq))
