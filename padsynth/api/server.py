"""PADSYNTH FastAPI server — main application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from padsynth.api.routes.render import router as render_router

app = FastAPI(
    title="PADSYNTH",
    description="PADsynth resynthesis — sampled waveform in, loopable pad chord out.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(render_router, prefix="/api")


# ── Public routes ──
@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "padsynth"}


@app.get("/api/info")
async def info() -> dict[str, object]:
    """System information and capabilities."""
    from padsynth import __version__

    return {
        "name": "PADSYNTH",
        "version": __version__,
        "layers": {
            "ear": "Loop analysis & pitch detection",
            "hands": "Harmonic profile, PADsynth rendering, chord mixing",
            "console": "Output peak limiting",
        },
        "modes": ["harmonic"],
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "render": "/api/render",
        },
    }
