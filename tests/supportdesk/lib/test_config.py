"""
Tests for guardrail configuration and runtime settings.
"""

import os
from unittest.mock import patch

import pytest

from supportdesk.config import (
    GuardrailConfig,
    Settings,
    load_guardrail_config,
    load_settings,
    validate_settings,
)
from supportdesk.config.guardrails import DEFAULT_WHITELISTED_CONTACTS
from supportdesk.lib.exceptions import ConfigurationError


class TestGuardrailConfigDefaults:
    def test_defaults(self):
        config = GuardrailConfig()
        assert config.max_message_length == 5000
        assert config.max_words == 1000
        assert config.max_messages_per_minute == 10
        assert config.max_messages_per_hour == 100
        assert config.max_response_length == 10000
        assert config.harmful_keyword_threshold == 3
        assert config.policy_bypass_threshold == 2
        assert config.max_special_char_ratio == 0.3
        assert config.whitelisted_contacts == DEFAULT_WHITELISTED_CONTACTS

    def test_is_frozen(self):
        config = GuardrailConfig()
        with pytest.raises(AttributeError):
            config.max_words = 5


class TestLoadGuardrailConfig:
    def test_empty_environment_gives_defaults(self):
        assert load_guardrail_config({}) == GuardrailConfig()

    @pytest.mark.parametrize(
        "env,field,expected",
        [
            ({"SUPPORTDESK_MAX_MESSAGE_LENGTH": "200"}, "max_message_length", 200),
            ({"SUPPORTDESK_MAX_SPECIAL_CHAR_RATIO": "0.5"}, "max_special_char_ratio", 0.5),
            ({"SUPPORTDESK_LOG_ALL_CHECKS": "true"}, "log_all_checks", True),
            ({"SUPPORTDESK_LOG_VIOLATIONS": "0"}, "log_violations", False),
            (
                {"SUPPORTDESK_WHITELISTED_CONTACTS": "help@example.com, +1 555 0100"},
                "whitelisted_contacts",
                ("help@example.com", "+1 555 0100"),
            ),
        ],
        ids=["int", "float", "bool_true", "bool_false", "tuple"],
    )
    def test_overrides(self, env, field, expected):
        assert getattr(load_guardrail_config(env), field) == expected

    def test_bad_number_raises(self):
        with pytest.raises(ConfigurationError, match="SUPPORTDESK_MAX_WORDS"):
            load_guardrail_config({"SUPPORTDESK_MAX_WORDS": "lots"})


class TestLoadSettings:
    def test_reads_environment(self):
        env = {
            "SUPPORTDESK_ENVIRONMENT": "production",
            "SUPPORTDESK_DEV_MODE": "0",
            "SUPPORTDESK_DATABASE_URL": "sqlite://",
            "SUPPORTDESK_CORS_ORIGINS": "http://localhost:3000, https://shop.example.com",
            "GOOGLE_API_KEY": "key",
            "GEMINI_MODEL": "gemini-test",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()

        assert settings.is_production is True
        assert settings.dev_mode is False
        assert settings.database_url == "sqlite://"
        assert settings.cors_origins == ("http://localhost:3000", "https://shop.example.com")
        assert settings.google_api_key == "key"
        assert settings.gemini_model == "gemini-test"
        assert settings.rate_limit_sweep_seconds == 3600.0

    def test_blank_api_key_is_none(self):
        with patch.dict(os.environ, {"GOOGLE_API_KEY": "  "}, clear=True):
            assert load_settings().google_api_key is None

    def test_bad_sweep_interval_raises(self):
        with patch.dict(os.environ, {"SUPPORTDESK_RATE_LIMIT_SWEEP_SECONDS": "soon"}, clear=True):
            with pytest.raises(ConfigurationError):
                load_settings()


class TestValidateSettings:
    def test_missing_api_key_fails_outside_dev_mode(self):
        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            validate_settings(Settings(dev_mode=False, google_api_key=None))

    def test_missing_api_key_only_warns_in_dev_mode(self):
        validate_settings(Settings(dev_mode=True, google_api_key=None))

    def test_wildcard_cors_forbidden_in_production(self):
        settings = Settings(environment="production", google_api_key="k", cors_origins=("*",))
        with pytest.raises(ConfigurationError, match="wildcard"):
            validate_settings(settings)

    def test_wildcard_cors_allowed_in_development(self):
        validate_settings(Settings(google_api_key="k", cors_origins=("*",)))

    def test_non_positive_sweep_interval(self):
        with pytest.raises(ConfigurationError):
            validate_settings(Settings(google_api_key="k", rate_limit_sweep_seconds=0))
