"""Tests for library settings."""

import pytest
from pydantic import ValidationError

from keysetmac.config import Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.environment == "development"
        assert settings.min_hmac_key_size == 16
        assert settings.min_tag_size == 10
        assert settings.log_level == "INFO"
        assert settings.log_json is False
        assert not settings.is_production

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("KEYSETMAC_MIN_TAG_SIZE", "16")
        monkeypatch.setenv("KEYSETMAC_LOG_JSON", "true")
        settings = Settings()
        assert settings.min_tag_size == 16
        assert settings.log_json is True

    def test_rejects_tiny_tags(self):
        with pytest.raises(ValidationError, match="min_tag_size"):
            Settings(min_tag_size=4)

    def test_production_requires_strong_hmac_keys(self):
        with pytest.raises(ValidationError, match="min_hmac_key_size"):
            Settings(environment="production", min_hmac_key_size=8)

    def test_development_allows_short_hmac_keys(self):
        assert Settings(min_hmac_key_size=8).min_hmac_key_size == 8

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
