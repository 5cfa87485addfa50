"""
Configuration - Environment-driven settings.

    ECOVOID_ENV            development | production (default development)
    ECOVOID_LOG_LEVEL      logging level name (default INFO)
    ECOVOID_PROFILE_DIR    directory for the saved profile (default: in memory)
    ECOVOID_SETTLE_DELAY   seconds the Eco's attack settles (default 0)
    ECOVOID_PHASE_DELAY    seconds between automatic phases (default 0)
    ECOVOID_SEED           seed for reproducible runs (default: random)
    ALLOWED_ORIGINS        comma-separated CORS origins (default *)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    log_level: str = "INFO"
    profile_dir: str | None = None
    settle_delay: float = 0.0
    phase_delay: float = 0.0
    seed: int | None = None
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    """Read settings from the environment. Malformed numbers raise ValueError."""
    seed = os.getenv("ECOVOID_SEED")
    return Settings(
        env=os.getenv("ECOVOID_ENV", "development"),
        log_level=os.getenv("ECOVOID_LOG_LEVEL", "INFO").upper(),
        profile_dir=os.getenv("ECOVOID_PROFILE_DIR") or None,
        settle_delay=float(os.getenv("ECOVOID_SETTLE_DELAY", "0")),
        phase_delay=float(os.getenv("ECOVOID_PHASE_DELAY", "0")),
        seed=int(seed) if seed else None,
        allowed_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()],
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
