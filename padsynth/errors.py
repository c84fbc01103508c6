"""PADSYNTH error taxonomy.

Every failure the core can report is one of these types, so callers
(CLI, API) can map them to exit codes / HTTP statuses without string
matching.
"""

from __future__ import annotations


class PadsynthError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(PadsynthError):
    """Missing or out-of-range configuration, raised before any numeric work."""


class AnalysisError(PadsynthError):
    """Loop region out of bounds, or no usable period in the source."""


class SynthesisError(PadsynthError):
    """Non-finite values produced while resynthesizing a note."""


class MixError(PadsynthError):
    """Internal invariant violation while mixing the chord."""
