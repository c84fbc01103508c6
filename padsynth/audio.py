"""Audio file I/O around the core — decode, downmix, encode."""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO

import numpy as np
import soundfile as sf
from numpy.typing import NDArray

from padsynth.config import settings


def downmix(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """Average all channels to mono."""
    if data.ndim == 2:
        return data.mean(axis=1)
    return data


def load_source(source: str | Path | BinaryIO) -> tuple[NDArray[np.float64], int]:
    """Read a source waveform as mono float64.

    Returns:
        (samples, sample_rate)
    """
    if isinstance(source, Path):
        source = str(source)
    data, sr = sf.read(source, dtype="float64", always_2d=True)
    return downmix(data), int(sr)


def save_audio(
    audio: NDArray[np.float64],
    path: str | Path,
    sr: int,
    subtype: str | None = None,
) -> Path:
    """Save mono audio to a WAV file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    sf.write(str(p), audio, sr, subtype=subtype or settings.output_subtype)
    return p


def encode_wav(audio: NDArray[np.float64], sr: int, subtype: str | None = None) -> bytes:
    """Encode mono audio as WAV bytes."""
    buf = io.BytesIO()
    sf.write(buf, audio, sr, format="WAV", subtype=subtype or settings.output_subtype)
    return buf.getvalue()
