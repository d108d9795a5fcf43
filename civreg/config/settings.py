"""Configuration models and helpers for civreg settings."""

from __future__ import annotations

import os
from copy import deepcopy
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


CURRENT_SETTINGS_SCHEMA_VERSION = 1

# -------------------- Settings Schema --------------------


class DatabaseCfg(BaseModel):
    """Database connection and pool configuration."""

    url: str = "sqlite:///./dev.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30.0
    pool_recycle: int = 1800

    @field_validator("pool_size", "max_overflow", mode="before")
    @classmethod
    def _cap_pool(cls, value: int) -> int:
        return max(0, min(256, int(value)))


class ConcurrencyCfg(BaseModel):
    """Conflict retry and lock wait behaviour for registry mutations."""

    max_conflict_retries: int = 3
    sqlite_busy_timeout_s: float = 30.0

    @field_validator("max_conflict_retries", mode="before")
    @classmethod
    def _cap_retries(cls, value: int) -> int:
        return max(1, min(20, int(value)))

    @field_validator("sqlite_busy_timeout_s", mode="before")
    @classmethod
    def _cap_busy_timeout(cls, value: float) -> float:
        numeric = float(value)
        return max(0.0, min(600.0, numeric))


class LoggingCfg(BaseModel):
    """Root logger configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_format: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class ApiCfg(BaseModel):
    """HTTP adapter configuration."""

    cors_allow_origins: List[str] = Field(default_factory=list)
    gzip_min_size: int = 512


class Settings(BaseModel):
    """Top-level settings model persisted on disk."""

    schema_version: int = Field(
        default=CURRENT_SETTINGS_SCHEMA_VERSION,
        ge=1,
        description="Version marker for persisted configuration payloads.",
    )
    database: DatabaseCfg = Field(default_factory=DatabaseCfg)
    concurrency: ConcurrencyCfg = Field(default_factory=ConcurrencyCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)
    api: ApiCfg = Field(default_factory=ApiCfg)


# -------------------- Persistence Helpers --------------------

CONFIG_FILENAME = "config.yaml"


def get_config_home() -> Path:
    """Return the directory where settings should be stored."""

    if os.name == "nt":
        base = Path(
            os.environ.get(
                "LOCALAPPDATA", str(Path.home() / "AppData" / "Local")
            )
        )
        return base / "civreg"
    return Path(os.environ.get("CIVREG_HOME", str(Path.home() / ".civreg")))


def config_path() -> Path:
    """Return the full path to the configuration file, creating directories as needed."""

    home = get_config_home()
    home.mkdir(parents=True, exist_ok=True)
    return home / CONFIG_FILENAME


def default_settings() -> Settings:
    """Instantiate a Settings object populated with defaults."""

    return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Persist the given settings to disk as YAML."""

    target_path = Path(path) if path else config_path()
    target_path.parent.mkdir(parents=True, exist_ok=True)
    data = settings.model_dump()
    with target_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False, allow_unicode=True)
    return target_path


def _coerce_schema_version(raw: object) -> int:
    """Return a normalised schema version value with sane bounds."""

    try:
        value = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    return max(1, value)


def _upgrade_settings_payload(
    data: dict[str, object], *, schema_version: int
) -> tuple[dict[str, object], bool]:
    """Return ``data`` stamped with the current schema version and whether it changed."""

    upgraded = deepcopy(data)
    version = max(schema_version, CURRENT_SETTINGS_SCHEMA_VERSION)
    changed = upgraded.get("schema_version") != version
    upgraded["schema_version"] = version
    return upgraded, changed


def _apply_env_overrides(settings: Settings) -> Settings:
    """Layer ``DATABASE_URL`` and ``LOG_LEVEL`` on top of the persisted values."""

    updates: dict[str, BaseModel] = {}
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        updates["database"] = settings.database.model_copy(update={"url": database_url})
    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        updates["logging"] = LoggingCfg(level=log_level, json_format=settings.logging.json_format)
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from disk, creating defaults if missing."""

    source_path = Path(path) if path else config_path()
    if not source_path.exists():
        settings = default_settings()
        save_settings(settings, source_path)
        return _apply_env_overrides(settings)
    with source_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raw = {}
    schema_version = _coerce_schema_version(raw.get("schema_version"))
    data, upgraded = _upgrade_settings_payload(raw, schema_version=schema_version)
    settings = Settings(**data)
    if upgraded:
        save_settings(settings, source_path)
    return _apply_env_overrides(settings)


__all__ = [
    "ApiCfg",
    "CONFIG_FILENAME",
    "CURRENT_SETTINGS_SCHEMA_VERSION",
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
