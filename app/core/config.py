#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "Initiatives Tracker"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./data/initiatives-tracker.db"

    # ── Storage ────────────────────────────────────────────────────────────

    data_dir: Path = Path("./data")
    max_asset_bytes: int = 10_485_760   # 10 MiB
    fetch_timeout_seconds: float = 5.0

    # ── Sessions ───────────────────────────────────────────────────────────

    session_cookie_name: str = "session"
    session_lifetime_days: int = 2
    session_renew_threshold_hours: int = 36
    cookie_secure: bool = True
    bcrypt_rounds: int = 12

    @property
    def pdf_dir(self) -> Path:
        p = self.data_dir / "pdf"
        p.mkdir(parents=True, exist_ok=True)
        return p

    @property
    def image_dir(self) -> Path:
        p = self.data_dir / "image"
        p.mkdir(parents=True, exist_ok=True)
        return p


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
