"""
Shared configuration.

Values come from the environment, optionally seeded from ``backend/.env``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=BASE_DIR / ".env")

_DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]


def _truthy(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "")
    if raw.strip():
        return [o.strip() for o in raw.split(",") if o.strip()]
    return list(_DEFAULT_CORS_ORIGINS)


@dataclass(frozen=True)
class Settings:
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    # Per-subscription buffer in SensorHub; oldest samples are dropped when full.
    sensor_queue_size: int = int(os.getenv("SENSOR_QUEUE_SIZE", "64"))
    # 0 means unbounded.
    session_queue_size: int = int(os.getenv("SESSION_QUEUE_SIZE", "0"))
    broadcast_queue_size: int = int(os.getenv("BROADCAST_QUEUE_SIZE", "16"))
    reset_continuity_on_heading_loss: bool = _truthy(
        os.getenv("RESET_CONTINUITY_ON_HEADING_LOSS"),
        default=False,
    )
    earth_radius_m: float = float(os.getenv("EARTH_RADIUS_M", "6371000"))
    cors_origins: tuple[str, ...] = tuple(_parse_cors_origins())


settings = Settings()
