"""Harmonic profile — discrete harmonics turned into Gaussian energy bands.

This is the PADsynth step: instead of a spike per harmonic, each harmonic
spreads its energy over a Gaussian band whose width grows with frequency
(like a detuned ensemble). Loosely based on
https://zynaddsubfx.sourceforge.io/doc/PADsynth/PADsynth.htm.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray

from padsynth.ear.spectral import HarmonicSpectrum
from padsynth.schema import HarmonicMode

logger = structlog.get_logger()

# How many standard deviations from the center a band extends
MAX_STDEV = 3.0

# Uniform range of the per-harmonic factor when random_amplitudes is on
RANDOM_AMPLITUDE_RANGE = (0.5, 1.5)


# ── Data Types ───────────────────────────────────────────


@dataclass(frozen=True)
class HarmonicBand:
    """One harmonic as a Gaussian energy band (frequencies at reference pitch)."""

    number: int
    frequency: float  # Hz
    magnitude: float
    bandwidth: float  # Gaussian standard deviation, Hz

    def sample(
        self,
        ratio: float,
        resolution_hz: float,
        n_bins: int,
        nyquist: float,
    ) -> tuple[int, NDArray[np.float64]] | None:
        """Per-bin energy of this band transposed by ``ratio``.

        The center snaps to the nearest bin so the band tiles the output
        period exactly. Energies sum to ``magnitude**2`` whatever the width.

        Returns:
            (first_bin, energies), or None if the band starts at/above Nyquist.
        """
        center_hz = self.frequency * ratio
        if center_hz >= nyquist:
            return None

        center = max(1, int(round(center_hz / resolution_hz)))
        if center >= n_bins:
            return None
        stdev = self.bandwidth * ratio / resolution_hz
        deviation = stdev * MAX_STDEV

        lo = max(int(np.ceil(center - deviation)), 1)  # never touch DC
        hi = min(int(np.floor(center + deviation)) + 1, n_bins)

        bins = np.arange(lo, hi, dtype=np.float64)
        if stdev > 0:
            weights = np.exp(-0.5 * ((bins - center) / stdev) ** 2)
        else:
            weights = (bins == center).astype(np.float64)
        energies = weights / np.sum(weights) * self.magnitude**2
        return lo, energies


@dataclass(frozen=True)
class HarmonicProfile:
    """Immutable band description shared by every chord note."""

    bands: tuple[HarmonicBand, ...]
    reference_hz: float
    sample_rate: int
    duration: int

    @property
    def resolution_hz(self) -> float:
        """Bin spacing of the output spectrum."""
        return self.sample_rate / self.duration

    @property
    def n_bins(self) -> int:
        return self.duration // 2 + 1

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    @property
    def energy(self) -> float:
        return float(sum(b.magnitude**2 for b in self.bands))


# ── Generation ───────────────────────────────────────────


def build_profile(
    spectrum: HarmonicSpectrum,
    mode: HarmonicMode,
    sample_rate: int,
    duration: int,
    random_amplitudes: bool = False,
    rng: np.random.Generator | None = None,
) -> HarmonicProfile:
    """Build the harmonic profile for a target sample rate and duration.

    Harmonics at or above the target Nyquist are dropped. With
    ``random_amplitudes`` each kept harmonic's magnitude is multiplied by
    one factor drawn from ``rng``; the profile (and so those factors) is
    shared by all chord notes.
    """
    if random_amplitudes and rng is None:
        raise ValueError("random_amplitudes requires a seeded generator")

    nyquist = sample_rate / 2
    bands: list[HarmonicBand] = []
    for harmonic in spectrum.harmonics:
        if harmonic.frequency >= nyquist:
            break
        magnitude = harmonic.magnitude
        if random_amplitudes:
            magnitude *= float(rng.uniform(*RANDOM_AMPLITUDE_RANGE))
        bands.append(
            HarmonicBand(
                number=harmonic.number,
                frequency=harmonic.frequency,
                magnitude=magnitude,
                bandwidth=mode.stdev * harmonic.frequency,
            )
        )

    profile = HarmonicProfile(
        bands=tuple(bands),
        reference_hz=spectrum.reference_hz,
        sample_rate=sample_rate,
        duration=duration,
    )
    logger.info(
        "profile.built",
        bands=len(bands),
        dropped=len(spectrum.harmonics) - len(bands),
        stdev=mode.stdev,
        resolution_hz=round(profile.resolution_hz, 4),
        random_amplitudes=random_amplitudes,
    )
    return profile
