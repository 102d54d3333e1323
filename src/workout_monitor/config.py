"""Centralised application settings loaded from environment / .env file."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Runtime configuration for the workout-monitor service.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in the flat
    ``WORKOUT_MONITOR_`` namespace (stripped automatically by
    *pydantic-settings*).

    Scoring thresholds and weights are deliberately absent: they are fixed
    domain constants in :mod:`workout_monitor.monitors`.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKOUT_MONITOR_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── API server ────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = int(os.getenv("PORT", "8000"))

    # ── CORS ──────────────────────────────────────────────────
    cors_origins: str = "*"  # comma-separated origins, or "*" for all

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["auto", "console", "json"] = "auto"  # auto → console on a TTY

    # ── User profile directory ────────────────────────────────
    profile_service_url: str = ""  # empty → in-memory directory
    profile_request_timeout: float = 5.0

    # ── Alert notifications ───────────────────────────────────
    webhook_url: str = ""
    alert_webhook_min_level: Literal["warning", "critical"] = "warning"

    # ── Downstream pipeline ───────────────────────────────────
    pipeline_maxsize: int = 10_000


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
