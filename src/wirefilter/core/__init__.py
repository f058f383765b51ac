"""
wirefilter.core - ambient primitives shared by every wirefilter module.

Modules:
    errors      - Typed error hierarchy (WireFilterError and subclasses)
    logging     - structlog configuration and logger factory
    settings    - pydantic-settings runtime configuration
"""

from wirefilter.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    SinkCreationError,
    SinkError,
    WireFilterError,
)
from wirefilter.core.logging import configure_logging, get_logger
from wirefilter.core.settings import WireFilterSettings, clear_settings_cache, get_settings

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "SinkCreationError",
    "SinkError",
    "WireFilterError",
    "configure_logging",
    "get_logger",
    "WireFilterSettings",
    "clear_settings_cache",
    "get_settings",
]
