"""PADsynth resynthesis engine — one seamless loop per chord note.

Per note:
  1. Accumulate every band's energy into a ``duration // 2 + 1`` bin array
     (power adds, so overlapping bands never cancel)
  2. sqrt(energy) → magnitude, uniform random phase per bin
  3. Inverse real FFT to ``duration`` samples
  4. Scale to the reference RMS

Every band sits on the output bin grid (``sample_rate / duration``), so
each buffer is exactly one period of its own spectrum and loops with no
seam. Notes only read the shared profile and draw from their own
(seed, index) stream, so they can render on worker threads.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import structlog
from numpy.typing import NDArray

from padsynth.config import settings
from padsynth.dsp import irfft, note_rng, rms
from padsynth.errors import SynthesisError
from padsynth.hands.profile import HarmonicProfile

logger = structlog.get_logger()


# ── Spectrum ─────────────────────────────────────────────


def accumulate_energy(profile: HarmonicProfile, ratio: float = 1.0) -> NDArray[np.float64]:
    """Per-bin energy of the whole profile transposed by ``ratio``.

    Bands are ascending, so the first one at/above Nyquist ends the loop.
    """
    energy = np.zeros(profile.n_bins, dtype=np.float64)
    for band in profile.bands:
        sampled = band.sample(ratio, profile.resolution_hz, profile.n_bins, profile.nyquist)
        if sampled is None:
            break
        lo, band_energy = sampled
        energy[lo : lo + len(band_energy)] += band_energy
    return energy


def _random_phase_spectrum(
    magnitude: NDArray[np.float64], duration: int, rng: np.random.Generator
) -> NDArray[np.complex128]:
    phase = rng.uniform(0.0, 2.0 * np.pi, size=len(magnitude))
    spectrum = magnitude * np.exp(1j * phase)
    spectrum[0] = 0.0
    if duration % 2 == 0:
        # The Nyquist bin of an even-length real signal must be real
        nyquist = spectrum[-1]
        spectrum[-1] = np.copysign(np.abs(nyquist), nyquist.real)
    return spectrum


# ── Rendering ────────────────────────────────────────────


def render_note(
    profile: HarmonicProfile,
    note_hz: float,
    rng: np.random.Generator,
    reference_rms: float | None = None,
) -> NDArray[np.float64]:
    """Render one chord note as a loopable buffer of ``profile.duration`` samples.

    Args:
        profile: Shared harmonic profile.
        note_hz: Fundamental of this note; harmonics scale by
            ``note_hz / profile.reference_hz``.
        rng: This note's own random stream.
        reference_rms: Output level, defaults to ``settings.reference_rms``.

    Raises:
        SynthesisError: non-finite magnitudes or samples, or no energy.
    """
    reference_rms = settings.reference_rms if reference_rms is None else reference_rms
    ratio = note_hz / profile.reference_hz

    energy = accumulate_energy(profile, ratio)
    magnitude = np.sqrt(energy)
    if not np.all(np.isfinite(magnitude)):
        raise SynthesisError(f"non-finite magnitude rendering note at {note_hz:.3f} Hz")

    spectrum = _random_phase_spectrum(magnitude, profile.duration, rng)
    audio = irfft(spectrum, profile.duration)

    level = rms(audio)
    if not np.isfinite(level):
        raise SynthesisError(f"non-finite samples rendering note at {note_hz:.3f} Hz")
    if level == 0.0:
        raise SynthesisError(
            f"note at {note_hz:.3f} Hz has no energy below Nyquist to normalize"
        )
    return audio * (reference_rms / level)


def render_chord(
    profile: HarmonicProfile,
    notes_hz: Sequence[float],
    seed: int,
    max_workers: int | None = None,
    reference_rms: float | None = None,
) -> list[NDArray[np.float64]]:
    """Render every chord note; results come back in chord order.

    Note ``i`` always uses ``note_rng(seed, i)``, so the output does not
    depend on thread scheduling or on the number of workers.
    """
    workers = settings.max_workers if max_workers is None else max_workers

    def _render(index: int) -> NDArray[np.float64]:
        audio = render_note(profile, notes_hz[index], note_rng(seed, index), reference_rms)
        logger.debug("padsynth.note_rendered", note=index, hz=round(notes_hz[index], 3))
        return audio

    if workers <= 1 or len(notes_hz) <= 1:
        buffers = [_render(i) for i in range(len(notes_hz))]
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(notes_hz))) as pool:
            buffers = list(pool.map(_render, range(len(notes_hz))))

    logger.info(
        "padsynth.chord_rendered",
        notes=len(buffers),
        duration=profile.duration,
        sample_rate=profile.sample_rate,
        workers=workers,
    )
    return buffers
