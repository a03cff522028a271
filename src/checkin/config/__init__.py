"""Configuration loading."""

from __future__ import annotations

from checkin.config.settings import (
    MetricsConfig,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = ["MetricsConfig", "Settings", "get_settings", "reload_settings"]
