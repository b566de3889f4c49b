"""Tests for configuration helpers."""

from __future__ import annotations

import reportsync.config as config


def test_defaults(monkeypatch):
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    settings = config.Settings()

    assert settings.append_separator_policy == "between_nonempty"
    assert settings.append_separator == " "
    assert settings.provenance_history_limit == 10
    assert settings.coerce_to_schema is True
    assert settings.cors_allow_origins == ()


def test_values_are_read_and_clamped(monkeypatch):
    monkeypatch.setenv("APPEND_SEPARATOR_POLICY", " Always ")
    monkeypatch.setenv("PROVENANCE_HISTORY_LIMIT", "0")
    monkeypatch.setenv("MAX_BATCH_SIZE", "-4")
    monkeypatch.setenv("COERCE_TO_SCHEMA", "off")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "  ")

    settings = config.Settings()

    assert settings.append_separator_policy == "always"
    assert settings.provenance_history_limit == 1
    assert settings.max_batch_size == 1
    assert settings.coerce_to_schema is False
    assert settings.cors_allow_origins == ("http://a.test", "http://b.test")
    assert settings.log_level == "info"


def test_get_settings_is_cached_until_reset(monkeypatch):
    first = config.get_settings()
    assert config.get_settings() is first

    monkeypatch.setenv("MAX_BATCH_SIZE", "7")
    config.reset_settings_cache()

    assert config.get_settings().max_batch_size == 7


def test_unknown_separator_policy_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("APPEND_SEPARATOR_POLICY", "space")

    with caplog.at_level("WARNING", logger="reportsync.config"):
        settings = config.Settings()

    assert settings.append_separator_policy == "between_nonempty"
    assert "APPEND_SEPARATOR_POLICY" in caplog.text
