"""
Settings - Environment-driven configuration.

Values are read from the process environment, with a local ``.env`` file
loaded first when present. Every variable is prefixed with ``PAWSWIPE_``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

from dotenv import load_dotenv


def _env_str(name: str, default: str) -> str:
    return os.getenv(f"PAWSWIPE_{name}", default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(f"PAWSWIPE_{name}", default))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(f"PAWSWIPE_{name}", default))


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for prefetching, gestures and the API."""
    # Image source
    source_url: str = "https://cataas.com/cat"
    image_width: int = 400
    image_height: int = 400
    request_timeout: float = 10.0

    # Prefetch
    batch_size: int = 15
    max_retries: int = 3
    backoff_step: float = 1.0
    validation_timeout: float = 5.0

    # Session
    settle_delay: float = 0.5
    swipe_distance_px: float = 100.0
    swipe_velocity_px_per_ms: float = 0.5
    min_elapsed_ms: float = 16.0

    # API / logging
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Settings:
        """Build settings from the environment (and .env, if any)."""
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            source_url=_env_str("SOURCE_URL", defaults.source_url),
            image_width=_env_int("IMAGE_WIDTH", defaults.image_width),
            image_height=_env_int("IMAGE_HEIGHT", defaults.image_height),
            request_timeout=_env_float("REQUEST_TIMEOUT", defaults.request_timeout),
            batch_size=_env_int("BATCH_SIZE", defaults.batch_size),
            max_retries=_env_int("MAX_RETRIES", defaults.max_retries),
            backoff_step=_env_float("BACKOFF_STEP", defaults.backoff_step),
            validation_timeout=_env_float("VALIDATION_TIMEOUT", defaults.validation_timeout),
            settle_delay=_env_float("SETTLE_DELAY", defaults.settle_delay),
            swipe_distance_px=_env_float("SWIPE_DISTANCE_PX", defaults.swipe_distance_px),
            swipe_velocity_px_per_ms=_env_float(
                "SWIPE_VELOCITY_PX_PER_MS", defaults.swipe_velocity_px_per_ms
            ),
            min_elapsed_ms=_env_float("MIN_ELAPSED_MS", defaults.min_elapsed_ms),
            allowed_origins=_env_str("ALLOWED_ORIGINS", "*").split(","),
            log_level=_env_str("LOG_LEVEL", defaults.log_level).upper(),
        )
