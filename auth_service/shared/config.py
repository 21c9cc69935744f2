from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    # APP_ prefixed keys win over bare keys.
    value = os.getenv(f"APP_{name}")
    if value:
        return value
    return os.getenv(name, default)


@dataclass(frozen=True)
class Settings:
    database_dsn: str
    jwt_secret: str
    github_client_id: str
    github_client_secret: str
    github_redirect_uri: str
    oauth_session_ttl_minutes: int
    access_token_ttl_minutes: int
    refresh_token_ttl_days: int
    db_timeout_seconds: float
    provider_timeout_seconds: float
    log_level: str


def get_settings() -> Settings:
    return Settings(
        database_dsn=_env("DATABASE_DSN", "sqlite:///auth.db"),
        jwt_secret=_env("JWT_SECRET", ""),
        github_client_id=_env("GITHUB_CLIENT_ID", ""),
        github_client_secret=_env("GITHUB_CLIENT_SECRET", ""),
        github_redirect_uri=_env("GITHUB_REDIRECT_URI", ""),
        oauth_session_ttl_minutes=int(_env("OAUTH_SESSION_TTL_MINUTES", "10")),
        access_token_ttl_minutes=int(_env("ACCESS_TOKEN_TTL_MINUTES", "15")),
        refresh_token_ttl_days=int(_env("REFRESH_TOKEN_TTL_DAYS", "7")),
        db_timeout_seconds=float(_env("DB_TIMEOUT_SECONDS", "5")),
        provider_timeout_seconds=float(_env("PROVIDER_TIMEOUT_SECONDS", "10")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
