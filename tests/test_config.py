"""Environment-driven configuration."""

from __future__ import annotations

from sqlalchemy.pool import StaticPool

import novabudget.config as cfg


def test_defaults_use_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("NOVABUDGET_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("NOVABUDGET_DATABASE_URL", raising=False)
    monkeypatch.delenv("NOVABUDGET_CURRENCY_LABEL", raising=False)

    config = cfg.BaseConfig()

    assert config.DATA_DIR == (tmp_path / "data").resolve()
    assert config.DATA_DIR.is_dir()
    assert config.DATABASE_URL == f"sqlite:///{config.DATA_DIR / 'novabudget.db'}"
    assert config.CURRENCY_LABEL == "Rs."
    assert config.sqlalchemy_engine_options() == {"connect_args": {"check_same_thread": False}}


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("NOVABUDGET_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("NOVABUDGET_DEV_MODE", "off")
    monkeypatch.setenv("NOVABUDGET_CURRENCY_LABEL", "$")
    monkeypatch.setenv("NOVABUDGET_DATABASE_URL", "postgresql://localhost/budget")

    config = cfg.BaseConfig()

    assert config.DEV_MODE is False
    assert config.CURRENCY_LABEL == "$"
    assert config.DATABASE_URL == "postgresql://localhost/budget"
    assert config.sqlalchemy_engine_options() == {}


def test_in_memory_config_uses_shared_memory_database(monkeypatch, tmp_path):
    monkeypatch.setenv("NOVABUDGET_DATA_DIR", str(tmp_path))

    config = cfg.InMemoryConfig()

    assert config.DATABASE_URL == "sqlite://"
    assert config.DEV_MODE is False
    assert config.sqlalchemy_engine_options()["poolclass"] is StaticPool
