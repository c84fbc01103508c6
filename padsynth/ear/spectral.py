"""Harmonic analysis of one loop of the source waveform.

Takes an integer number of periods starting at the loop begin, runs a
real FFT over them and sums the power that falls around each harmonic.
Phase is thrown away; resynthesis assigns fresh random phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt
import structlog

from padsynth.dsp import cents_to_ratio, rfft_normalized, root_sum_power
from padsynth.ear.pitch import detect_period
from padsynth.errors import AnalysisError

logger = structlog.get_logger()


# ── Data Types ───────────────────────────────────────────


@dataclass(frozen=True)
class LoopRegion:
    """Whole periods of the source used for analysis."""

    start: int
    period: float  # samples per period (fractional)
    periods: int

    @property
    def length(self) -> int:
        return int(round(self.period * self.periods))

    @property
    def stop(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class Harmonic:
    number: int  # 1 = fundamental
    frequency: float  # Hz, detune applied
    magnitude: float


@dataclass(frozen=True)
class HarmonicSpectrum:
    """Discrete harmonic spectrum of the analyzed loop.

    reference_hz is the loop's fundamental before detune; chord notes are
    transposed relative to it. Harmonic frequencies already include the
    detune ratio.
    """

    reference_hz: float
    detune_ratio: float
    sample_rate: float
    loop: LoopRegion
    harmonics: tuple[Harmonic, ...]

    @property
    def energy(self) -> float:
        return float(sum(h.magnitude**2 for h in self.harmonics))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "reference_hz": self.reference_hz,
            "detune_ratio": self.detune_ratio,
            "sample_rate": self.sample_rate,
            "loop": {
                "start": self.loop.start,
                "period": self.loop.period,
                "periods": self.loop.periods,
            },
            "harmonics": [
                [h.number, round(h.frequency, 4), round(h.magnitude, 8)]
                for h in self.harmonics
            ],
        }


# ── Analysis ─────────────────────────────────────────────


def find_loop(
    num_samples: int,
    sample_rate: float,
    loop_begin: int,
    loop_end: int | None = None,
    period: float | None = None,
    samples: npt.ArrayLike | None = None,
) -> LoopRegion:
    """Fit as many whole periods as possible into ``[loop_begin, loop_end)``.

    If ``period`` is None it is detected from ``samples``.
    """
    end = num_samples if loop_end is None else loop_end
    if loop_begin < 0 or loop_begin >= num_samples:
        raise AnalysisError(
            f"loop begin {loop_begin} outside waveform of {num_samples} samples"
        )
    if end > num_samples:
        raise AnalysisError(f"loop end {end} runs past waveform end {num_samples}")
    if end <= loop_begin:
        raise AnalysisError(f"loop end {end} must be greater than loop begin {loop_begin}")

    if period is None:
        if samples is None:
            raise AnalysisError("no pitch given and no samples to detect it from")
        period = detect_period(samples, sample_rate, start=loop_begin, stop=end)

    if not np.isfinite(period) or period <= 0:
        raise AnalysisError(f"period {period} is not positive")

    periods = int(np.floor((end - loop_begin) / period))
    if periods < 1:
        raise AnalysisError(
            f"loop region of {end - loop_begin} samples is shorter than one period ({period:.2f})"
        )
    return LoopRegion(start=loop_begin, period=float(period), periods=periods)


def _harmonic_magnitudes(
    spectrum: npt.NDArray[np.complex128], bins_per_harmonic: float
) -> list[float]:
    """Root-sum-power of the bins around each harmonic. Entry 0 is harmonic 1."""

    def to_bin(h: float) -> int:
        # ceil() turns fractional bin positions into half-open range ends
        return int(np.ceil(h * bins_per_harmonic))

    magnitudes: list[float] = []
    harmonic = 1
    while True:
        bottom = to_bin(harmonic - 0.5)
        if bottom >= len(spectrum):
            break
        top = min(to_bin(harmonic + 0.5), len(spectrum))
        magnitudes.append(root_sum_power(spectrum[bottom:top]))
        harmonic += 1
    return magnitudes


def analyze_loop(
    samples: npt.ArrayLike,
    sample_rate: float,
    loop_begin: int,
    loop_end: int | None = None,
    pitch_hz: float | None = None,
    detune_cents: float = 0.0,
) -> HarmonicSpectrum:
    """Extract the harmonic spectrum of the looped portion of a waveform.

    Args:
        samples: Mono source waveform.
        sample_rate: Source rate (after any transpose override).
        loop_begin: First sample of the loop.
        loop_end: End of the usable region (exclusive), default end of data.
        pitch_hz: Fundamental of the source; detected when None.
        detune_cents: Shift applied to every harmonic frequency.

    Returns:
        HarmonicSpectrum with one entry per harmonic, ascending.
    """
    data = np.asarray(samples, dtype=np.float64)
    if data.ndim != 1:
        raise AnalysisError(f"expected mono samples, got shape {data.shape}")

    period = None if pitch_hz is None else sample_rate / pitch_hz
    loop = find_loop(len(data), sample_rate, loop_begin, loop_end, period, data)
    reference_hz = sample_rate / loop.period

    window = data[loop.start : loop.stop]
    spectrum = rfft_normalized(window)
    magnitudes = _harmonic_magnitudes(spectrum, len(window) / loop.period)

    detune_ratio = cents_to_ratio(detune_cents)
    harmonics = tuple(
        Harmonic(number=h, frequency=h * reference_hz * detune_ratio, magnitude=m)
        for h, m in enumerate(magnitudes, start=1)
    )

    logger.info(
        "spectral.analysis_complete",
        reference_hz=round(reference_hz, 3),
        detected=pitch_hz is None,
        periods=loop.periods,
        window=len(window),
        harmonics=len(harmonics),
        detune_cents=detune_cents,
    )

    return HarmonicSpectrum(
        reference_hz=reference_hz,
        detune_ratio=detune_ratio,
        sample_rate=sample_rate,
        loop=loop,
        harmonics=harmonics,
    )
