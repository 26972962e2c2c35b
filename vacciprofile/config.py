"""Runtime settings read from the environment."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # VACCIPROFILE_API_URL is authoritative, the NEXT_PUBLIC_* names are
    # accepted so existing deployments keep working.
    API_BASE_URL: str = Field(
        "http://localhost:5000",
        validation_alias=AliasChoices(
            "VACCIPROFILE_API_URL", "NEXT_PUBLIC_API_URL", "NEXT_PUBLIC_API"
        ),
    )
    FORCE_HTTPS: bool = False
    REQUEST_TIMEOUT: float = 30.0
    CACHE_TTL_SECONDS: int = 3600

    DATABASE_PATH: str = "vacciprofile.db"
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = ""          # empty disables the admin routes

    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file="./.env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()


def api_base_url(cfg: Settings | None = None) -> str:
    """Base URL of the upstream API, upgraded to https when FORCE_HTTPS is set."""
    cfg = cfg or settings
    url = cfg.API_BASE_URL.strip().rstrip("/")
    if cfg.FORCE_HTTPS and url.lower().startswith("http://"):
        url = "https://" + url[len("http://"):]
    return url
