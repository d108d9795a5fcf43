from __future__ import annotations

import yaml

from civreg.config import (
    CURRENT_SETTINGS_SCHEMA_VERSION,
    ConcurrencyCfg,
    LoggingCfg,
    Settings,
    config_path,
    load_settings,
    save_settings,
)


def test_first_load_writes_defaults(tmp_path):
    settings = load_settings()

    assert config_path().exists()
    assert config_path().parent == tmp_path / "civreg-home"
    assert settings.concurrency.max_conflict_retries == 3
    assert settings.schema_version == CURRENT_SETTINGS_SCHEMA_VERSION


def test_round_trip_preserves_values(tmp_path):
    target = tmp_path / "custom.yaml"
    original = Settings(logging=LoggingCfg(level="debug", json_format=False))
    save_settings(original, target)

    loaded = load_settings(target)
    assert loaded.logging.level == "DEBUG"
    assert loaded.logging.json_format is False


def test_unversioned_payload_is_stamped(tmp_path):
    target = tmp_path / "handwritten.yaml"
    target.write_text(
        yaml.safe_dump({"concurrency": {"max_conflict_retries": 5}}),
        encoding="utf-8",
    )

    loaded = load_settings(target)

    assert loaded.concurrency.max_conflict_retries == 5
    assert loaded.schema_version == CURRENT_SETTINGS_SCHEMA_VERSION
    persisted = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert persisted["schema_version"] == CURRENT_SETTINGS_SCHEMA_VERSION
    assert persisted["concurrency"]["max_conflict_retries"] == 5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://registry@db/civreg")
    monkeypatch.setenv("LOG_LEVEL", "warning")

    settings = load_settings()

    assert settings.database.url == "postgresql+psycopg://registry@db/civreg"
    assert settings.logging.level == "WARNING"


def test_concurrency_limits_are_capped():
    cfg = ConcurrencyCfg(max_conflict_retries=500, sqlite_busy_timeout_s=-3)
    assert cfg.max_conflict_retries == 20
    assert cfg.sqlite_busy_timeout_s == 0.0
