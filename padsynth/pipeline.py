"""PADSYNTH pipeline — source samples + config → loopable pad.

Stages:
  ① Boundary checks that need the source rate (ConfigError)
  ② Spectral analysis of the loop (ear.spectral)
  ③ Harmonic profile for the target rate/duration (hands.profile)
  ④ Per-note PADsynth rendering, threaded (hands.padsynth)
  ⑤ Chord mix in declared order (hands.mixer)
  ⑥ Down-only peak normalization (console.mastering)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import structlog
from numpy.typing import NDArray

from padsynth.console.mastering import peak_normalize
from padsynth.dsp import profile_rng
from padsynth.ear.spectral import HarmonicSpectrum, analyze_loop
from padsynth.errors import ConfigError
from padsynth.hands.mixer import mix_chord
from padsynth.hands.padsynth import render_chord
from padsynth.hands.profile import HarmonicProfile, build_profile
from padsynth.schema import Config

logger = structlog.get_logger()


@dataclass
class RenderResult:
    """Finished output buffer plus what was learned on the way."""

    audio: NDArray[np.float64]
    sample_rate: int
    peak: float  # of the mix, before normalization
    gain: float  # applied by the normalizer
    spectrum: HarmonicSpectrum
    profile: HarmonicProfile

    @property
    def duration_s(self) -> float:
        return len(self.audio) / self.sample_rate


def render(
    samples: npt.ArrayLike,
    sample_rate: int,
    config: Config,
    max_workers: int | None = None,
) -> RenderResult:
    """Resynthesize ``samples`` into the chord described by ``config``.

    Args:
        samples: Mono source waveform (downmix beforehand).
        sample_rate: Rate of the source file.
        config: Validated configuration.
        max_workers: Threads for note rendering, default from settings.

    Returns:
        RenderResult with ``config.output.num_samples`` samples.
    """
    in_cfg = config.input
    out_cfg = config.output

    # ── ① Boundary ──
    source_rate = in_cfg.transpose.sample_rate or sample_rate
    if source_rate <= 0:
        raise ConfigError(f"source sample rate must be positive, is {source_rate}")

    pitch_hz = None
    if in_cfg.pitch is not None:
        pitch_hz = in_cfg.pitch.hz
        if not 0 < pitch_hz < source_rate / 2:
            raise ConfigError(
                f"input pitch {pitch_hz:.3f} Hz outside (0, {source_rate / 2:g}) Hz"
            )

    duration = out_cfg.num_samples
    notes_hz = [note.pitch.hz for note in out_cfg.chord]

    data = np.asarray(samples, dtype=np.float64)
    logger.info(
        "pipeline.start",
        source_samples=len(data),
        source_rate=source_rate,
        out_rate=out_cfg.sample_rate,
        duration=duration,
        notes=len(notes_hz),
        seed=out_cfg.seed,
    )

    # ── ② Analysis ──
    spectrum = analyze_loop(
        data,
        source_rate,
        loop_begin=in_cfg.loop_begin,
        loop_end=in_cfg.loop_end,
        pitch_hz=pitch_hz,
        detune_cents=in_cfg.transpose.detune_cents,
    )

    # ── ③ Profile ──
    profile = build_profile(
        spectrum,
        out_cfg.mode,
        sample_rate=out_cfg.sample_rate,
        duration=duration,
        random_amplitudes=out_cfg.random_amplitudes,
        rng=profile_rng(out_cfg.seed),
    )

    # ── ④ Resynthesis ──
    buffers = render_chord(profile, notes_hz, out_cfg.seed, max_workers=max_workers)

    # ── ⑤ Mix ──
    mixed = mix_chord(
        buffers,
        [note.volume for note in out_cfg.chord],
        out_cfg.master_volume,
        duration,
    )

    # ── ⑥ Normalize ──
    normalized = peak_normalize(mixed)

    logger.info(
        "pipeline.complete",
        samples=len(normalized.audio),
        peak=round(normalized.peak, 6),
        gain=round(normalized.gain, 6),
    )
    return RenderResult(
        audio=normalized.audio,
        sample_rate=out_cfg.sample_rate,
        peak=normalized.peak,
        gain=normalized.gain,
        spectrum=spectrum,
        profile=profile,
    )
