"""
Configuration helpers for the learning API.

Routers/services never read os.environ directly; they call get_settings().
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    log_level: str
    log_json: bool
    cas_retries: int
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    origins = tuple(
        origin.strip().rstrip("/")
        for origin in (os.getenv("CORS_ORIGINS") or "").split(",")
        if origin.strip()
    )
    return Settings(
        app_env=app_env,
        database_url=os.getenv("DATABASE_URL", ""),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_json=_bool(os.getenv("LOG_JSON"), app_env == "prod"),
        cas_retries=max(1, _int(os.getenv("CAS_RETRIES", "3"), 3)),
        cors_origins=origins,
    )
