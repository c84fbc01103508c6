"""PADSYNTH Console — output peak limiting before encoding.

The mix is only ever scaled down: a buffer already inside the output
range passes through untouched, so the configured master volume is kept.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray

from padsynth.config import settings
from padsynth.dsp import peak
from padsynth.errors import SynthesisError

logger = structlog.get_logger()


@dataclass
class NormalizeResult:
    """Output of the normalizer."""

    audio: NDArray[np.float64]
    peak: float  # before scaling
    gain: float  # 1.0 when nothing was done

    @property
    def peak_db(self) -> float:
        return _peak_db(self.peak * self.gain)


def _peak_db(value: float) -> float:
    return float(20 * np.log10(max(value, 1e-10)))


def peak_normalize(
    audio: NDArray[np.float64],
    ceiling: float | None = None,
) -> NormalizeResult:
    """Scale ``audio`` down so its peak fits ``ceiling``; never gain up.

    Args:
        audio: Mixed master buffer.
        ceiling: Largest representable magnitude, default
            ``settings.output_ceiling``.

    Raises:
        SynthesisError: the buffer holds NaN or infinite samples.
    """
    ceiling = settings.output_ceiling if ceiling is None else ceiling
    if not np.all(np.isfinite(audio)):
        raise SynthesisError("non-finite samples reached the output stage")

    level = peak(audio)
    if level > ceiling:
        gain = ceiling / level
        out = audio * gain
    else:
        gain = 1.0
        out = audio.copy()

    logger.info(
        "mastering.peak_normalized",
        peak_db=round(_peak_db(level), 2),
        gain=round(gain, 6),
        limited=gain < 1.0,
    )
    return NormalizeResult(audio=out, peak=level, gain=gain)
