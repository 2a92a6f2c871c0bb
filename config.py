"""
Centralised settings loader.

Values come from the environment (or a local `.env` file) through
pydantic-settings; import the cached `settings` singleton everywhere.
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB ────────────────────────────────────────────────
    env_name: str = Field("local", validation_alias="ENV_NAME")
    database_url: str | None = Field(None, validation_alias="DATABASE_URL")
    sql_echo: bool = Field(False, validation_alias="SQL_ECHO")

    # ─── logging / HTTP ──────────────────────────────────────────────
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    cors_origins: list[str] = Field(["*"], validation_alias="CORS_ORIGINS")

    # allow other teammates’ env-vars without crashing
    model_config = SettingsConfigDict(
        extra="ignore", env_file=".env", env_file_encoding="utf-8"
    )


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
