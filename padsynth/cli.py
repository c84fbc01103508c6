"""Command line entry point.

Usage:
    padsynth SOURCE.wav CONFIG.json OUT.wav [-v]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import soundfile as sf
import structlog

from padsynth.audio import load_source, save_audio
from padsynth.errors import PadsynthError
from padsynth.pipeline import render
from padsynth.schema import load_config

logger = structlog.get_logger()


def _configure_logging(verbosity: int) -> None:
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="padsynth",
        description="Resynthesize a sampled waveform into a loopable PADsynth chord.",
    )
    parser.add_argument("wav", type=Path, help="audio file to resynthesize")
    parser.add_argument("config", type=Path, help="JSON configuration for resynthesis")
    parser.add_argument("out_wav", type=Path, help="output file to write to")
    parser.add_argument("--subtype", default=None, help="output sample format (default PCM_24)")
    parser.add_argument("--workers", type=int, default=None, help="note rendering threads")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = load_config(args.config)
        try:
            samples, sr = load_source(args.wav)
        except (OSError, sf.LibsndfileError) as e:
            print(f"padsynth: cannot read WAV file '{args.wav}': {e}", file=sys.stderr)
            return 1
        result = render(samples, sr, config, max_workers=args.workers)
    except PadsynthError as e:
        print(f"padsynth: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    out = save_audio(result.audio, args.out_wav, result.sample_rate, args.subtype)
    logger.info("cli.written", path=str(out), seconds=round(result.duration_s, 3))
    return 0


if __name__ == "__main__":
    sys.exit(main())
