"""PADSYNTH Mixer — sums rendered chord notes into one master buffer.

Notes are added strictly in chord order: float addition is not
associative, and a fixed order keeps the mix bit-reproducible.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray

from padsynth.errors import MixError
from padsynth.schema import AmplVolume, Volume

logger = structlog.get_logger()


# ── Data Types ───────────────────────────────────────────


@dataclass
class NoteTrack:
    """A single rendered chord note."""

    index: int
    audio: NDArray[np.float64]
    volume: Volume = field(default_factory=AmplVolume)

    @property
    def gain(self) -> float:
        """Linear gain: Ampl as-is, Power via sqrt, Db via 10^(db/20)."""
        return self.volume.amplitude


@dataclass
class MixConfig:
    """Master mix configuration."""

    duration: int  # samples every note must have
    master_volume: Volume = field(default_factory=AmplVolume)

    @property
    def master_gain(self) -> float:
        return self.master_volume.amplitude


# ── Mixer Engine ─────────────────────────────────────────


class ChordMixer:
    """Accumulates note buffers in the order they were added."""

    def __init__(self, config: MixConfig) -> None:
        self.config = config
        self.tracks: list[NoteTrack] = []

    def add_note(self, audio: NDArray[np.float64], volume: Volume | None = None) -> NoteTrack:
        """Queue a rendered note; its position in the chord is the call order."""
        track = NoteTrack(
            index=len(self.tracks),
            audio=audio,
            volume=volume or AmplVolume(),
        )
        self.tracks.append(track)
        return track

    def mix(self) -> NDArray[np.float64]:
        """Sum all notes, then apply the master volume.

        Raises:
            MixError: a note buffer does not have ``config.duration`` samples.
        """
        duration = self.config.duration
        master = np.zeros(duration, dtype=np.float64)

        for track in self.tracks:
            if track.audio.shape != (duration,):
                raise MixError(
                    f"note {track.index} has shape {track.audio.shape}, expected ({duration},)"
                )
            master += track.audio * track.gain

        master *= self.config.master_gain

        logger.info(
            "mixer.mixed",
            notes=len(self.tracks),
            duration=duration,
            master_gain=round(self.config.master_gain, 6),
        )
        return master


# ── Quick Mix Helper ─────────────────────────────────────


def mix_chord(
    buffers: Sequence[NDArray[np.float64]],
    volumes: Sequence[Volume],
    master_volume: Volume,
    duration: int,
) -> NDArray[np.float64]:
    """Mix rendered notes with their per-note volumes and the master volume."""
    if len(buffers) != len(volumes):
        raise MixError(f"{len(buffers)} note buffers but {len(volumes)} volumes")

    mixer = ChordMixer(MixConfig(duration=duration, master_volume=master_volume))
    for audio, volume in zip(buffers, volumes):
        mixer.add_note(audio, volume)
    return mixer.mix()
