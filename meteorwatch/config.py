"""Runtime configuration — environment variables with hackathon-friendly defaults.

Values are read once from the process environment (``.env`` is loaded by
``meteorwatch.main`` before the first call to :func:`get_settings`).
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Feed endpoints
# ---------------------------------------------------------------------------

NEO_FEED_URL = "https://api.nasa.gov/neo/rest/v1/feed"
ISS_POSITION_URL = "https://api.wheretheiss.at/v1/satellites/25544"  # ISS (ZARYA)

# ---------------------------------------------------------------------------
# Ranking / presentation defaults
# ---------------------------------------------------------------------------

# Keep only the closest few objects so the carousel stays short
FEED_LIMIT = 5

# diameter / miss distance is tiny, scale up for easier comparison.
# No physical units; treat as a tunable.
THREAT_SCALING_CONSTANT = 1_000_000_000.0

# Size-class thresholds on threat_score (<= small, <= medium, else large)
THREAT_SMALL_MAX = 30.0
THREAT_MEDIUM_MAX = 75.0

CAROUSEL_DURATION_MS = 220
ISS_POLL_INTERVAL_MS = 3_000
HTTP_TIMEOUT_S = 30.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    nasa_api_key: str = "DEMO_KEY"
    neo_feed_url: str = NEO_FEED_URL
    iss_position_url: str = ISS_POSITION_URL
    iss_poll_interval_ms: int = ISS_POLL_INTERVAL_MS
    feed_limit: int = FEED_LIMIT
    threat_scaling_constant: float = THREAT_SCALING_CONSTANT
    threat_small_max: float = THREAT_SMALL_MAX
    threat_medium_max: float = THREAT_MEDIUM_MAX
    carousel_duration_ms: int = CAROUSEL_DURATION_MS
    http_timeout_s: float = HTTP_TIMEOUT_S

    def __post_init__(self):
        # Scores must stay non-negative
        if not (math.isfinite(self.threat_scaling_constant) and self.threat_scaling_constant >= 0):
            raise ValueError(
                f"THREAT_SCALING_CONSTANT must be a non-negative number, got {self.threat_scaling_constant!r}"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment, falling back to module defaults."""
        return cls(
            nasa_api_key=os.getenv("NASA_API_KEY", "DEMO_KEY"),
            neo_feed_url=os.getenv("NEO_FEED_URL", NEO_FEED_URL),
            iss_position_url=os.getenv("ISS_POSITION_URL", ISS_POSITION_URL),
            iss_poll_interval_ms=_env_int("ISS_POLL_INTERVAL_MS", ISS_POLL_INTERVAL_MS),
            feed_limit=_env_int("FEED_LIMIT", FEED_LIMIT),
            threat_scaling_constant=_env_float("THREAT_SCALING_CONSTANT", THREAT_SCALING_CONSTANT),
            threat_small_max=_env_float("THREAT_SMALL_MAX", THREAT_SMALL_MAX),
            threat_medium_max=_env_float("THREAT_MEDIUM_MAX", THREAT_MEDIUM_MAX),
            carousel_duration_ms=_env_int("CAROUSEL_DURATION_MS", CAROUSEL_DURATION_MS),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", HTTP_TIMEOUT_S),
        )


# Singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment (useful for testing)."""
    global _settings
    _settings = None
