"""Service settings. Every field can be overridden with a SOS_* environment variable."""

import os
from dataclasses import dataclass, field
from typing import Tuple

# Jaipur city limits: (min_lat, max_lat, min_lon, max_lon)
DEFAULT_SERVICE_AREA = (26.82, 26.98, 75.72, 75.88)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_area(name: str, default: Tuple[float, float, float, float]) -> Tuple[float, float, float, float]:
    raw = os.environ.get(name)
    if not raw:
        return default
    parts = [float(p) for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError(f"{name} must be 'min_lat,max_lat,min_lon,max_lon', got {raw!r}")
    return tuple(parts)


@dataclass
class Settings:
    database_url: str = "sqlite://"
    seed_demo_data: bool = True

    simulator_enabled: bool = True
    simulator_interval: float = 3.0
    simulator_jitter: float = 0.001
    service_area: Tuple[float, float, float, float] = field(default=DEFAULT_SERVICE_AREA)

    minutes_per_km: float = 3
    # placeholder ETA when no ambulance is available to measure against
    fallback_eta_minutes: int = 15
    nearest_candidates: int = 3

    display_timezone: str = "Asia/Kolkata"

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("SOS_DATABASE_URL", "sqlite://"),
            seed_demo_data=_env_bool("SOS_SEED_DEMO_DATA", True),
            simulator_enabled=_env_bool("SOS_SIMULATOR_ENABLED", True),
            simulator_interval=float(os.environ.get("SOS_SIMULATOR_INTERVAL", "3.0")),
            simulator_jitter=float(os.environ.get("SOS_SIMULATOR_JITTER", "0.001")),
            service_area=_env_area("SOS_SERVICE_AREA", DEFAULT_SERVICE_AREA),
            minutes_per_km=float(os.environ.get("SOS_MINUTES_PER_KM", "3")),
            fallback_eta_minutes=int(os.environ.get("SOS_FALLBACK_ETA_MINUTES", "15")),
            nearest_candidates=int(os.environ.get("SOS_NEAREST_CANDIDATES", "3")),
            display_timezone=os.environ.get("SOS_DISPLAY_TIMEZONE", "Asia/Kolkata"),
            host=os.environ.get("SOS_HOST", "0.0.0.0"),
            port=int(os.environ.get("SOS_PORT", "8000")),
            log_level=os.environ.get("SOS_LOG_LEVEL", "INFO").upper(),
        )
