# app/settings.py
"""
Application settings.

Read from environment variables (and a local .env file) once at import time.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

# Load .env file
from dotenv import load_dotenv
load_dotenv()

from simulation.errors import ConfigurationError


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application configuration."""

    # API settings
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("PORT", "3000"))
    allowed_origins: List[str] = field(
        default_factory=lambda: os.getenv("ALLOWED_ORIGINS", "*").split(",")
    )

    # Stream cadence (real time between ticks)
    tick_ms: int = int(os.getenv("TICK_MS", "2000"))

    # Fleet size
    train_count: int = int(os.getenv("TRAIN_COUNT", "4"))
    max_cars_per_train: int = int(os.getenv("MAX_CARS_PER_TRAIN", "12"))
    max_awbs_per_car: int = int(os.getenv("MAX_AWBS_PER_CAR", "5"))

    # Simulated hours per real hour; 1800 makes a 2s tick one simulated hour
    time_scale: float = float(os.getenv("TIME_SCALE", "1800"))

    # Station dwell after arrival (simulated minutes)
    min_dwell_minutes: float = float(os.getenv("MIN_DWELL_MINUTES", "30"))
    max_dwell_minutes: float = float(os.getenv("MAX_DWELL_MINUTES", "120"))

    # Speed bounds (km/h)
    min_speed_kmh: float = float(os.getenv("MIN_SPEED_KMH", "30"))
    max_speed_kmh: float = float(os.getenv("MAX_SPEED_KMH", "90"))

    # Fixed seed for reproducible runs
    seed: Optional[int] = _optional_int("SIM_SEED")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _bool("LOG_JSON", "true")

    @property
    def tick_seconds(self) -> float:
        return self.tick_ms / 1000.0

    def validate(self) -> None:
        """
        Check settings before the simulation starts.

        Raises:
            ConfigurationError: On non-positive counts or inverted ranges
        """
        for name in ("tick_ms", "train_count", "max_cars_per_train", "max_awbs_per_car"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if self.time_scale <= 0:
            raise ConfigurationError(f"time_scale must be positive, got {self.time_scale}")

        if self.min_dwell_minutes < 0 or self.min_dwell_minutes > self.max_dwell_minutes:
            raise ConfigurationError(
                f"Invalid dwell range: {self.min_dwell_minutes}..{self.max_dwell_minutes} minutes"
            )

        if self.min_speed_kmh <= 0 or self.min_speed_kmh > self.max_speed_kmh:
            raise ConfigurationError(
                f"Invalid speed range: {self.min_speed_kmh}..{self.max_speed_kmh} km/h"
            )


# Global settings instance
settings = Settings()
