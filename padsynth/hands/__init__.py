"""HANDS — Synthesis layer.

Modules:
  profile: harmonics → Gaussian energy bands
  padsynth: per-note random-phase resynthesis
  mixer: chord mix-down
"""
