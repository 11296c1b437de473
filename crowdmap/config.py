# crowdmap/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PLACES_PATH = Path(__file__).resolve().parent / "resources" / "places.json"


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int, *, positive: bool = True) -> int:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if positive and value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name).lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    seoul_api_key: str = ""
    database_url: str = ""

    collect_interval_s: int = 300
    retention_days: int = 7
    retention_sweep_interval_s: int = 3600
    cache_ttl_s: int = 300

    batch_size: int = 10
    batch_delay_s: float = 0.5
    upstream_timeout_s: float = 8.0

    history_hours: int = 24
    places_path: Path = DEFAULT_PLACES_PATH

    enable_scheduler: bool = True
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        # SEOUL_OPENAPI_KEY is accepted for older .env files
        api_key = _env_str("SEOUL_API_KEY") or _env_str("SEOUL_OPENAPI_KEY")
        origins = [o.strip() for o in _env_str("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            seoul_api_key=api_key,
            database_url=_env_str("DATABASE_URL"),
            collect_interval_s=_env_int("COLLECT_INTERVAL_S", 300),
            retention_days=_env_int("SNAPSHOT_RETENTION_DAYS", 7),
            retention_sweep_interval_s=_env_int("RETENTION_SWEEP_INTERVAL_S", 3600),
            cache_ttl_s=_env_int("RESULT_CACHE_TTL_S", 300),
            batch_size=_env_int("COLLECT_BATCH_SIZE", 10),
            batch_delay_s=_env_float("COLLECT_BATCH_DELAY_S", 0.5),
            upstream_timeout_s=_env_float("UPSTREAM_TIMEOUT_S", 8.0),
            history_hours=_env_int("HISTORY_DEFAULT_HOURS", 24),
            places_path=Path(_env_str("PLACES_CATALOG_PATH") or DEFAULT_PLACES_PATH),
            enable_scheduler=_env_bool("ENABLE_COLLECTOR", True),
            cors_origins=tuple(origins or ["*"]),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )

    def require_database_url(self) -> str:
        if not self.database_url:
            raise RuntimeError("DATABASE_URL is missing in environment variables.")
        return self.database_url
