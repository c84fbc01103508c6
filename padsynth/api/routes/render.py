"""PADSYNTH API — render route.

Upload a source waveform together with a JSON config and get the
rendered pad back as a WAV file.
"""

from __future__ import annotations

import io
from typing import Annotated

import soundfile as sf
import structlog
from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from padsynth.audio import encode_wav, load_source
from padsynth.errors import AnalysisError, ConfigError, MixError, SynthesisError
from padsynth.pipeline import render
from padsynth.schema import parse_config

logger = structlog.get_logger()

router = APIRouter(tags=["render"])


# ── Endpoints ────────────────────────────────────────────


@router.post("/render")
def render_pad(
    file: Annotated[UploadFile, File()],
    config: Annotated[str, Form()],
) -> Response:
    """Resynthesize the uploaded source with the given config.

    Returns the output as ``audio/wav``; peak and applied gain are echoed
    in ``X-Padsynth-Peak`` / ``X-Padsynth-Gain``.
    """
    try:
        cfg = parse_config(config)
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    content = file.file.read()
    try:
        samples, sr = load_source(io.BytesIO(content))
    except sf.LibsndfileError as e:
        raise HTTPException(status_code=400, detail=f"Unreadable audio file: {e}") from e

    logger.info("render.received", filename=file.filename, samples=len(samples), sr=sr)

    try:
        result = render(samples, sr, cfg)
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except AnalysisError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (SynthesisError, MixError) as e:
        logger.error("render.failed", error=str(e), kind=type(e).__name__)
        raise HTTPException(status_code=500, detail=f"Render failed: {e!s}") from e

    return Response(
        content=encode_wav(result.audio, result.sample_rate),
        media_type="audio/wav",
        headers={
            "X-Padsynth-Peak": f"{result.peak:.6f}",
            "X-Padsynth-Gain": f"{result.gain:.6f}",
        },
    )
