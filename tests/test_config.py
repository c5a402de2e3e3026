"""
Config selection: DATABASE_URL normalisation and production guards.
"""

import pytest

from app.config import ProductionConfig, TestingConfig, _database_url, config


def test_postgres_scheme_is_normalised(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/pkm")
    assert _database_url() == "postgresql://u:p@db/pkm"


def test_missing_database_url_uses_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert _database_url("sqlite:///dev.db") == "sqlite:///dev.db"
    assert _database_url() is None


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        ProductionConfig()


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/pkm")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        ProductionConfig()


def test_testing_config_disables_rate_limits():
    assert config["testing"] is TestingConfig
    assert TestingConfig.RATELIMIT_ENABLED is False
    assert TestingConfig.SKIPPED_SCORE == 4
