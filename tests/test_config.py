from pathlib import Path

import pytest
from pydantic import ValidationError

from fieldwork_billing.config import Environment, LogLevel, Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(environment=Environment.TESTING)

        assert settings.estimate_validity_days == 30
        assert settings.default_payment_terms_days == 30
        assert settings.number_padding == 4
        assert settings.allow_reconversion is True
        assert settings.reject_negative_amounts is False
        assert settings.autosave is True
        assert settings.debug is False
        assert settings.is_testing

    def test_environment_variables_use_prefix(self, monkeypatch):
        monkeypatch.setenv("FWB_ESTIMATE_VALIDITY_DAYS", "45")
        monkeypatch.setenv("FWB_SQLITE_PATH", "/tmp/billing.db")
        monkeypatch.setenv("FWB_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("FWB_ALLOW_RECONVERSION", "false")

        settings = Settings()

        assert settings.estimate_validity_days == 45
        assert settings.sqlite_path == Path("/tmp/billing.db")
        assert settings.log_level == LogLevel.DEBUG
        assert settings.allow_reconversion is False

    def test_development_enables_debug(self):
        settings = Settings(environment=Environment.DEVELOPMENT, debug=False)
        assert settings.debug is True
        assert settings.is_development

    def test_production_flag(self):
        assert Settings(environment=Environment.PRODUCTION).is_production

    def test_production_defaults_to_json_logs(self):
        assert Settings(environment=Environment.PRODUCTION).log_format == "json"
        explicit = Settings(environment=Environment.PRODUCTION, log_format="console")
        assert explicit.log_format == "console"

    def test_rejects_out_of_range_values(self):
        with pytest.raises(ValidationError):
            Settings(estimate_validity_days=-1)
        with pytest.raises(ValidationError):
            Settings(number_padding=0)

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
