"""Configuration module for topcharts."""

from .settings import (
    DatabaseSettings,
    LastfmSettings,
    ObservabilitySettings,
    Settings,
    TopsSettings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "LastfmSettings",
    "ObservabilitySettings",
    "Settings",
    "TopsSettings",
    "get_settings",
]
