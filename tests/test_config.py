"""Tests for configuration loading and validation."""

import pytest

from call_agent.config import (
    AppConfig,
    BusinessConfig,
    DialogConfig,
    ProviderConfig,
    _safe_float,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_invalid_temperature_too_high(self):
        config = AppConfig(provider=ProviderConfig(temperature=3.0))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_temperature_negative(self):
        config = AppConfig(provider=ProviderConfig(temperature=-0.5))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_provider_timeout(self):
        config = AppConfig(provider=ProviderConfig(timeout_seconds=0))
        with pytest.raises(ValueError, match="LLM_TIMEOUT_SECONDS"):
            _validate_config(config)

    def test_negative_min_interval(self):
        config = AppConfig(provider=ProviderConfig(min_interval_ms=-1))
        with pytest.raises(ValueError, match="LLM_MIN_INTERVAL_MS"):
            _validate_config(config)

    def test_unsupported_default_language(self):
        config = AppConfig(business=BusinessConfig(default_language="fr"))
        with pytest.raises(ValueError, match="DEFAULT_LANGUAGE"):
            _validate_config(config)

    def test_unknown_environment(self):
        config = AppConfig(environment="staging")
        with pytest.raises(ValueError, match="APP_ENV"):
            _validate_config(config)

    def test_zero_unclear_limit(self):
        config = AppConfig(dialog=DialogConfig(max_unclear_per_state=0))
        with pytest.raises(ValueError, match="MAX_UNCLEAR_PER_STATE"):
            _validate_config(config)

    def test_zero_history_cap(self):
        config = AppConfig(dialog=DialogConfig(history_cap=0))
        with pytest.raises(ValueError, match="HISTORY_CAP"):
            _validate_config(config)


class TestConfigValues:
    def test_provider_disabled_without_key(self):
        assert not ProviderConfig(api_key="").enabled
        assert ProviderConfig(api_key="sk-test").enabled

    def test_development_flag(self):
        assert AppConfig(environment="development").is_development
        assert not AppConfig(environment="production").is_development

    def test_config_is_frozen(self):
        config = AppConfig()
        with pytest.raises(AttributeError):
            config.log_level = "DEBUG"


class TestEnvParsing:
    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("TEST_CALL_AGENT_INT", "42")
        assert _safe_int("TEST_CALL_AGENT_INT", "1") == 42

    def test_safe_int_uses_default(self, monkeypatch):
        monkeypatch.delenv("TEST_CALL_AGENT_INT", raising=False)
        assert _safe_int("TEST_CALL_AGENT_INT", "7") == 7

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_CALL_AGENT_INT", "ten")
        with pytest.raises(ValueError, match="TEST_CALL_AGENT_INT"):
            _safe_int("TEST_CALL_AGENT_INT", "1")

    def test_safe_float_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_CALL_AGENT_FLOAT", "fast")
        with pytest.raises(ValueError, match="TEST_CALL_AGENT_FLOAT"):
            _safe_float("TEST_CALL_AGENT_FLOAT", "1.0")
