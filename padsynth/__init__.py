"""PADSYNTH — PADsynth resynthesis of sampled waveforms into loopable pads.

Layers:
  ear: loop analysis & pitch detection
  hands: harmonic profile, PADsynth rendering, chord mixing
  console: output peak limiting

Entry point: ``padsynth.pipeline.render``.
"""

__version__ = "0.1.0"
