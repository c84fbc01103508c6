"""Autocorrelation period detection for loops without an explicit pitch."""

from __future__ import annotations

import librosa
import numpy as np
import numpy.typing as npt
import structlog
from scipy.signal import find_peaks, get_window

from padsynth.config import settings
from padsynth.errors import AnalysisError

logger = structlog.get_logger()

# A later peak only wins if it is clearly stronger than the first one
# (guards against picking 2x the period on a pure tone).
PEAK_TOLERANCE = 0.9


def detect_period(
    samples: npt.ArrayLike,
    sample_rate: float,
    start: int = 0,
    stop: int | None = None,
    fmin: float | None = None,
    fmax: float | None = None,
    confidence: float | None = None,
) -> float:
    """Estimate the period (in samples, fractional) of ``samples[start:stop]``.

    Args:
        samples: Mono waveform.
        sample_rate: Rate used to turn fmin/fmax into lags.
        start: First sample of the analysis window (the loop begin).
        stop: End of the analysis window (exclusive).
        fmin: Lowest detectable pitch, Hz.
        fmax: Highest detectable pitch, Hz.
        confidence: Minimum normalized autocorrelation at the chosen lag.

    Returns:
        Period in samples, refined by parabolic interpolation.

    Raises:
        AnalysisError: window too short, silent, or no periodic peak.
    """
    fmin = settings.pitch_fmin if fmin is None else fmin
    fmax = settings.pitch_fmax if fmax is None else fmax
    confidence = settings.pitch_confidence if confidence is None else confidence

    segment = np.asarray(samples, dtype=np.float64)[start:stop]
    n = len(segment)

    min_lag = max(1, int(np.floor(sample_rate / fmax)))
    # Two full periods must fit in the window
    max_lag = min(int(np.ceil(sample_rate / fmin)), n // 2)
    if max_lag <= min_lag:
        raise AnalysisError(
            f"loop region of {n} samples is too short to detect a period"
        )

    # Hann-windowed autocorrelation divided by the window's own
    # autocorrelation (Boersma 1993): keeps the peak symmetric, so the
    # parabolic refinement below is not skewed by the window edges.
    window = get_window("hann", n, fftbins=False)
    ac = librosa.autocorrelate((segment - np.mean(segment)) * window, max_size=max_lag + 2)
    if ac[0] <= 0:
        raise AnalysisError("loop region is silent; cannot detect a period")
    ac_window = librosa.autocorrelate(window, max_size=max_lag + 2)
    ac = (ac / ac[0]) / (ac_window / ac_window[0])

    negative = np.flatnonzero(ac[: max_lag + 1] < 0)
    if len(negative) == 0:
        raise AnalysisError("degenerate autocorrelation: no zero crossing")
    lo = max(int(negative[0]), min_lag)

    peaks, _ = find_peaks(ac[lo : max_lag + 2])
    peaks = peaks + lo
    peaks = peaks[peaks <= max_lag]
    if len(peaks) == 0:
        raise AnalysisError("degenerate autocorrelation: no periodic peak")

    best = float(np.max(ac[peaks]))
    lag = int(peaks[np.argmax(ac[peaks] >= best * PEAK_TOLERANCE)])
    strength = float(ac[lag])
    if strength < confidence:
        raise AnalysisError(
            f"degenerate period: correlation peak {strength:.3f} below {confidence:.3f}"
        )

    a, b, c = ac[lag - 1], ac[lag], ac[lag + 1]
    denom = a - 2 * b + c
    shift = 0.5 * (a - c) / denom if denom != 0 else 0.0
    period = lag + float(shift)
    if not np.isfinite(period) or period <= 0:
        raise AnalysisError(f"detected period {period} is not positive")

    logger.debug(
        "pitch.period_detected",
        period=round(period, 3),
        hz=round(sample_rate / period, 3),
        strength=round(strength, 3),
    )
    return period
