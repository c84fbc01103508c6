"""Tests for config parsing and eager validation."""

from __future__ import annotations

import copy
import json

import pytest

from padsynth.errors import ConfigError
from padsynth.schema import (
    AmplVolume,
    HzPitch,
    MidiPitch,
    MsDuration,
    PowerVolume,
    SecDuration,
    SmpDuration,
    load_config,
    parse_config,
)

BASE = {
    "input": {
        "loop_begin": 48,
        "pitch": {"kind": "midi", "note": 60},
        "transpose": {"detune_cents": 5.0},
    },
    "output": {
        "sample_rate": 10000,
        "duration": {"kind": "smp", "count": 8192},
        "mode": {"kind": "harmonic", "stdev": 0.01},
        "chord": [
            {"pitch": {"kind": "midi", "note": 60}, "volume": {"kind": "ampl", "ratio": 1.0}},
        ],
        "seed": 0,
    },
}


def _with(path: str, value) -> dict:
    """Copy of BASE with one dotted field replaced (or removed if value is ...)."""
    data = copy.deepcopy(BASE)
    *parents, leaf = path.split(".")
    node = data
    for key in parents:
        node = node[key]
    if value is ...:
        del node[leaf]
    else:
        node[leaf] = value
    return data


# ── Valid configs ────────────────────────────────────────


def test_parse_base_config():
    cfg = parse_config(BASE)

    assert cfg.input.loop_begin == 48
    assert cfg.input.loop_end is None
    assert isinstance(cfg.input.pitch, MidiPitch)
    assert cfg.input.transpose.detune_cents == 5.0
    assert cfg.input.transpose.sample_rate is None
    assert cfg.output.num_samples == 8192
    assert cfg.output.mode.stdev == 0.01


def test_defaults():
    cfg = parse_config(_with("output.seed", ...))

    assert cfg.output.seed == 0
    assert cfg.output.random_amplitudes is False
    assert cfg.output.master_volume == AmplVolume(ratio=1.0)


def test_chord_volume_defaults_to_unity():
    data = _with("output.chord", [{"pitch": {"kind": "hz", "frequency": 220.0}}])
    cfg = parse_config(data)
    assert cfg.output.chord[0].volume.amplitude == 1.0


def test_parse_json_text():
    assert parse_config(json.dumps(BASE)) == parse_config(BASE)


def test_pitch_omitted_means_detect():
    cfg = parse_config(_with("input.pitch", ...))
    assert cfg.input.pitch is None


def test_pitch_conversions():
    assert MidiPitch(note=69).hz == pytest.approx(440.0)
    assert MidiPitch(note=60).hz == pytest.approx(261.6256, abs=1e-4)
    assert HzPitch(frequency=123.4).hz == 123.4


def test_duration_conversions():
    assert SmpDuration(count=100).samples(48000) == 100
    assert SecDuration(seconds=0.5).samples(48000) == 24000
    assert MsDuration(milliseconds=250).samples(8000) == 2000


def test_power_volume_amplitude():
    assert PowerVolume(ratio=0.5).amplitude == pytest.approx(0.5**0.5)


# ── Invalid configs ──────────────────────────────────────


@pytest.mark.parametrize(
    "path,value",
    [
        ("output.mode", {"kind": "harmonic", "stdev": 0.0}),
        ("output.mode", {"kind": "harmonic", "stdev": -1.0}),
        ("output.mode", {"kind": "formant", "stdev": 0.1}),
        ("output.duration", {"kind": "smp", "count": 0}),
        ("output.duration", {"kind": "sec", "seconds": -1.0}),
        ("output.duration", {"kind": "sec", "seconds": 1e-6}),
        ("output.sample_rate", 0),
        ("output.chord", []),
        ("output.chord", [{"pitch": {"kind": "hz", "frequency": 5000.0}}]),
        ("output.chord", [{"pitch": {"kind": "hz", "frequency": 0.0}}]),
        ("output.chord", [{"pitch": {"kind": "midi", "note": 200}}]),
        ("output.master_volume", {"kind": "power", "ratio": -0.5}),
        ("output.seed", -1),
        ("output.mode", ...),
        ("input.loop_begin", -1),
        ("input.loop_end", 48),
        ("input.loop_end", 10),
        ("input.pitch", {"kind": "cents", "value": 3}),
        ("input.transpose", {"sample_rate": 0}),
        ("input.surprise", True),
    ],
)
def test_invalid_config_raises(path, value):
    with pytest.raises(ConfigError):
        parse_config(_with(path, value))


def test_invalid_json_text():
    with pytest.raises(ConfigError):
        parse_config("{not json")


# ── Files ────────────────────────────────────────────────


def test_load_config_file(tmp_path):
    path = tmp_path / "pad.json"
    path.write_text(json.dumps(BASE))
    assert load_config(path) == parse_config(BASE)


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(tmp_path / "missing.json")


def test_load_config_bad_json(tmp_path):
    path = tmp_path / "pad.json"
    path.write_text("{")
    with pytest.raises(ConfigError, match="parsing"):
        load_config(path)


def test_load_config_not_an_object(tmp_path):
    path = tmp_path / "pad.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
        load_config(path)
