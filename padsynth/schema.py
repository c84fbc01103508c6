"""PADSYNTH configuration schema.

Typed, validated view of a resynthesis config document. Variants are
tagged objects (``{"kind": "midi", "note": 60}``) so every field has one
exact set of shapes. Anything out of range is rejected here, as a
``ConfigError``, before the pipeline touches the audio.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from padsynth.dsp import db_to_ampl, midi_to_hz, power_to_ampl
from padsynth.errors import ConfigError


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Pitch ────────────────────────────────────────────────


class MidiPitch(_Model):
    kind: Literal["midi"] = "midi"
    note: int

    @property
    def hz(self) -> float:
        return midi_to_hz(self.note)


class HzPitch(_Model):
    kind: Literal["hz"] = "hz"
    frequency: float = Field(gt=0)

    @property
    def hz(self) -> float:
        return self.frequency


Pitch = Annotated[Union[MidiPitch, HzPitch], Field(discriminator="kind")]


# ── Duration ─────────────────────────────────────────────


class SmpDuration(_Model):
    kind: Literal["smp"] = "smp"
    count: int = Field(gt=0)

    def samples(self, sample_rate: int) -> int:
        return self.count


class SecDuration(_Model):
    kind: Literal["sec"] = "sec"
    seconds: float = Field(gt=0)

    def samples(self, sample_rate: int) -> int:
        return int(round(self.seconds * sample_rate))


class MsDuration(_Model):
    kind: Literal["ms"] = "ms"
    milliseconds: float = Field(gt=0)

    def samples(self, sample_rate: int) -> int:
        return int(round(self.milliseconds / 1000.0 * sample_rate))


Duration = Annotated[
    Union[SmpDuration, SecDuration, MsDuration], Field(discriminator="kind")
]


# ── Volume ───────────────────────────────────────────────


class AmplVolume(_Model):
    kind: Literal["ampl"] = "ampl"
    ratio: float = Field(default=1.0, ge=0)

    @property
    def amplitude(self) -> float:
        return self.ratio


class PowerVolume(_Model):
    kind: Literal["power"] = "power"
    ratio: float = Field(ge=0)

    @property
    def amplitude(self) -> float:
        return power_to_ampl(self.ratio)


class DbVolume(_Model):
    kind: Literal["db"] = "db"
    db: float

    @property
    def amplitude(self) -> float:
        return db_to_ampl(self.db)


Volume = Annotated[
    Union[AmplVolume, PowerVolume, DbVolume], Field(discriminator="kind")
]


# ── Synthesis Mode ───────────────────────────────────────


class HarmonicMode(_Model):
    """Gaussian band per harmonic; width is ``stdev`` × harmonic frequency."""

    kind: Literal["harmonic"] = "harmonic"
    stdev: float = Field(gt=0)


# ── Sections ─────────────────────────────────────────────


class Transpose(_Model):
    detune_cents: float = 0.0
    sample_rate: int | None = Field(default=None, gt=0)  # overrides the file's rate


class InputConfig(_Model):
    loop_begin: int = Field(ge=0)
    loop_end: int | None = None  # exclusive; defaults to end of file
    pitch: Pitch | None = None  # omitted → autocorrelation pitch detection
    transpose: Transpose = Field(default_factory=Transpose)

    @model_validator(mode="after")
    def _check_loop(self) -> InputConfig:
        if self.loop_end is not None and self.loop_end <= self.loop_begin:
            raise ValueError(
                f"loop_end = {self.loop_end} must be greater than loop_begin = {self.loop_begin}"
            )
        return self


class ChordNote(_Model):
    pitch: Pitch
    volume: Volume = Field(default_factory=AmplVolume)


class OutputConfig(_Model):
    sample_rate: int = Field(gt=0)
    duration: Duration
    mode: HarmonicMode
    master_volume: Volume = Field(default_factory=AmplVolume)
    random_amplitudes: bool = False
    chord: list[ChordNote] = Field(min_length=1)
    seed: int = Field(default=0, ge=0)

    @property
    def num_samples(self) -> int:
        return self.duration.samples(self.sample_rate)

    @model_validator(mode="after")
    def _check_output(self) -> OutputConfig:
        if self.num_samples <= 0:
            raise ValueError(f"duration must be at least one sample, is {self.num_samples}")
        nyquist = self.sample_rate / 2
        for i, note in enumerate(self.chord):
            hz = note.pitch.hz
            if not 0 < hz < nyquist:
                raise ValueError(
                    f"chord note {i} pitch {hz:.3f} Hz outside (0, {nyquist:g}) Hz"
                )
        return self


class Config(_Model):
    """Complete resynthesis setup."""

    input: InputConfig
    output: OutputConfig


# ── Loading ──────────────────────────────────────────────


def parse_config(data: str | bytes | dict[str, Any]) -> Config:
    """Validate a config document (JSON text or an already-decoded dict)."""
    try:
        if isinstance(data, dict):
            return Config.model_validate(data)
        return Config.model_validate_json(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config: {e}") from e


def load_config(path: str | Path) -> Config:
    """Read and validate a JSON config file."""
    p = Path(path)
    try:
        text = p.read_text()
    except OSError as e:
        raise ConfigError(f"cannot read config file '{p}': {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"parsing config file '{p}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file '{p}' must contain a JSON object")
    return parse_config(data)
