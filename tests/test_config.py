"""Tests for settings loading and the exception hierarchy."""

import pytest
from pydantic import ValidationError

from service_bootstrap.config import Settings, get_settings
from service_bootstrap.core import (
    ApplicationException,
    ConfigurationException,
    DatabaseConnectionException,
    DatabaseTimeoutException,
    EnvParseError,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("ENVIRONMENT", "LOG_LEVEL", "DB_POOL_SIZE", "DB_CONNECT_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.db_pool_size == 5
        assert settings.db_max_overflow == 10
        assert settings.db_pool_pre_ping is True
        assert settings.db_connect_timeout == 10.0

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DB_POOL_SIZE", "20")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = Settings()

        assert settings.db_pool_size == 20
        assert settings.log_level == "DEBUG"
        assert settings.environment == "production"

    def test_rejects_unknown_environment(self):
        with pytest.raises(ValidationError):
            Settings(environment="moon")

    def test_rejects_zero_pool(self):
        with pytest.raises(ValidationError):
            Settings(db_pool_size=0)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            Settings(db_connect_timeout=0)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestExceptions:
    def test_env_parse_error_is_value_error(self):
        err = EnvParseError("bad", "x")
        assert isinstance(err, ValueError)
        assert isinstance(err, ConfigurationException)
        assert err.details == {"value": "x"}

    def test_database_exception_details(self):
        err = DatabaseConnectionException("down", "ping", {"database_url": "u"})
        assert isinstance(err, ApplicationException)
        assert err.details == {"stage": "ping", "database_url": "u"}

    def test_timeout_exception(self):
        err = DatabaseTimeoutException(1.5)
        assert err.stage == "ping"
        assert err.timeout == 1.5
        assert "1.5s" in str(err)
