"""Tests for connectkit.config — env-driven settings."""

import pytest
from pydantic import ValidationError

from connectkit.config import ConnectKitSettings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("CONNECTKIT_MAX_RETRIES", raising=False)
    settings = ConnectKitSettings(_env_file=None)
    assert settings.max_retries == 3
    assert settings.transport_error_policy == "raise"
    assert settings.strict_extraction is False
    assert settings.default_page_size == 50


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CONNECTKIT_TRANSPORT_ERROR_POLICY", "empty")
    monkeypatch.setenv("CONNECTKIT_DEFAULT_PAGE_SIZE", "200")
    settings = ConnectKitSettings(_env_file=None)
    assert settings.transport_error_policy == "empty"
    assert settings.default_page_size == 200


def test_invalid_policy_is_rejected():
    with pytest.raises(ValidationError):
        ConnectKitSettings(_env_file=None, transport_error_policy="ignore")


def test_get_settings_is_cached():
    assert get_settings() is get_settings()


def test_is_production(monkeypatch):
    monkeypatch.setenv("CONNECTKIT_ENVIRONMENT", "production")
    assert ConnectKitSettings(_env_file=None).is_production is True
    assert ConnectKitSettings(_env_file=None, environment="staging").is_production is False


def test_unknown_environment_is_rejected():
    with pytest.raises(ValidationError):
        ConnectKitSettings(_env_file=None, environment="qa")
