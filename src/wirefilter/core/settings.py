"""Centralized settings for wirefilter.

All fields can be set via ``WIREFILTER_*`` environment variables (e.g.
``WIREFILTER_UPDATE_INTERVAL_TICKS=4``) or through a ``.env`` file.

Fields
──────
update_interval_ticks : Run a filter pass every N ticks
ticks_per_second      : Tick rate of the threaded tick driver
log_level             : Structlog log level
log_format            : ``console`` or ``json``
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WireFilterSettings(BaseSettings):
    """wirefilter runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WIREFILTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Scheduling ───────────────────────────────────────────────
    update_interval_ticks: int = Field(default=2, ge=1)
    ticks_per_second: float = Field(default=60.0, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, WireFilterSettings] = {}


def get_settings(*, _force_reload: bool = False) -> WireFilterSettings:
    """Load, validate, and cache a :class:`WireFilterSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = WireFilterSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
