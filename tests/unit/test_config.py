"""Tests for environment-driven settings."""

import pytest

from src.config import DEFAULT_FBREF_URL, Settings, get_settings

ENV_VARS = [
    "FBREF_URL", "EXPORTER_ADDR", "EXPORTER_PORT", "SCRAPE_INTERVAL_SECONDS",
    "REQUEST_TIMEOUT", "MAX_RETRIES", "RETRY_BACKOFF_SECONDS", "IMPERSONATE", "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = get_settings()

    assert settings == Settings()
    assert settings.fbref_url == DEFAULT_FBREF_URL
    assert settings.port == 2113
    assert settings.scrape_interval == 3600.0
    assert settings.request_timeout == 25.0
    assert settings.max_retries == 3


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("EXPORTER_PORT", "9200")
    monkeypatch.setenv("SCRAPE_INTERVAL_SECONDS", "900")
    monkeypatch.setenv("REQUEST_TIMEOUT", "20")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.port == 9200
    assert settings.scrape_interval == 900.0
    assert settings.request_timeout == 20.0
    assert settings.log_level == "DEBUG"


def test_port_argument_wins(monkeypatch):
    monkeypatch.setenv("EXPORTER_PORT", "9200")
    assert get_settings(port=9300).port == 9300


def test_blank_value_uses_default(monkeypatch):
    monkeypatch.setenv("MAX_RETRIES", "  ")
    assert get_settings().max_retries == 3


@pytest.mark.parametrize("name,raw", [
    ("EXPORTER_PORT", "http"),
    ("EXPORTER_PORT", "70000"),
    ("MAX_RETRIES", "0"),
    ("SCRAPE_INTERVAL_SECONDS", "-1"),
    ("REQUEST_TIMEOUT", "soon"),
])
def test_invalid_values(monkeypatch, name, raw):
    monkeypatch.setenv(name, raw)
    with pytest.raises(ValueError):
        get_settings()
