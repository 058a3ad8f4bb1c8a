"""
Configuration helpers for the Courtside backend.

Routers and services read settings through get_settings() instead of
fetching os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    jwt_secret: str
    token_ttl_seconds: int
    password_reset_ttl: int
    password_min_length: int
    event_write_retries: int
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    cors_origins: tuple[str, ...]
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        if not value:
            return ()
        return tuple(item.strip().rstrip("/") for item in value.split(",") if item.strip())

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:3001").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", ""),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change-me"),
        token_ttl_seconds=_int(os.getenv("TOKEN_TTL_SECONDS", "3600"), 3600),
        password_reset_ttl=_int(os.getenv("PASSWORD_RESET_TTL", "3600"), 3600),
        password_min_length=_int(os.getenv("PASSWORD_MIN_LENGTH", "8"), 8),
        event_write_retries=max(1, _int(os.getenv("EVENT_WRITE_RETRIES", "3"), 3)),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        cors_origins=_list(os.getenv("CORS_ORIGINS")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
