"""EAR — Analysis layer.

- Pitch: autocorrelation period detection
- Spectral: harmonic spectrum of whole loop periods
"""

from padsynth.ear.pitch import detect_period
from padsynth.ear.spectral import (
    Harmonic,
    HarmonicSpectrum,
    LoopRegion,
    analyze_loop,
    find_loop,
)

__all__ = [
    "detect_period",
    "Harmonic",
    "HarmonicSpectrum",
    "LoopRegion",
    "analyze_loop",
    "find_loop",
]
