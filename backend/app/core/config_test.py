"""
Unit tests for settings parsing.

Tests how environment values are read into Settings:
- BACKEND_CORS_ORIGINS as a comma separated list, a JSON list, or blank
- LOG_LEVEL normalization
"""

import pytest

from app.core.config import Settings


@pytest.mark.unit
def test_cors_origins_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", "http://a.com, http://b.com")

    settings = Settings(_env_file=None)

    assert settings.BACKEND_CORS_ORIGINS == ["http://a.com", "http://b.com"]


@pytest.mark.unit
def test_cors_origins_from_json_env(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", '["http://a.com", "http://b.com"]')

    settings = Settings(_env_file=None)

    assert settings.BACKEND_CORS_ORIGINS == ["http://a.com", "http://b.com"]


@pytest.mark.unit
def test_cors_origins_single_value_env(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", "http://localhost:5173")

    settings = Settings(_env_file=None)

    assert settings.BACKEND_CORS_ORIGINS == ["http://localhost:5173"]


@pytest.mark.unit
def test_blank_cors_origins_fall_back_to_wildcard(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", "   ")

    settings = Settings(_env_file=None)

    assert settings.BACKEND_CORS_ORIGINS == ["*"]


@pytest.mark.unit
def test_log_level_is_uppercased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.LOG_LEVEL == "DEBUG"
