"""PADSYNTH global configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Resynthesis
    reference_rms: float = 0.1  # every rendered note is scaled to this RMS
    max_workers: int = 4  # threads used to render chord notes

    # Output
    output_ceiling: float = 1.0  # full scale of the output format
    output_subtype: str = "PCM_24"

    # Pitch detection (used when input.pitch is omitted)
    pitch_fmin: float = 20.0
    pitch_fmax: float = 5000.0
    pitch_confidence: float = 0.3  # min normalized autocorrelation peak

    model_config = {"env_prefix": "PADSYNTH_"}


settings = Settings()
