"""Configuration helpers exposed at :mod:`civreg.config`."""

from __future__ import annotations

from .settings import (
    CURRENT_SETTINGS_SCHEMA_VERSION,
    ApiCfg,
    ConcurrencyCfg,
    DatabaseCfg,
    LoggingCfg,
    Settings,
    config_path,
    default_settings,
    get_config_home,
    load_settings,
    save_settings,
)

__all__ = [
    "CURRENT_SETTINGS_SCHEMA_VERSION",
    "ApiCfg",
    "ConcurrencyCfg",
    "DatabaseCfg",
    "LoggingCfg",
    "Settings",
    "config_path",
    "default_settings",
    "get_config_home",
    "load_settings",
    "save_settings",
]
