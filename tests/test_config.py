"""Tests for environment-driven configuration."""

from __future__ import annotations

import config


def test_defaults(monkeypatch):
    for var in ("DATABASE_NAME", "ADMIN_PASSWORD", "LOG_LEVEL", "PORT", "API_BASE_URL"):
        monkeypatch.delenv(var, raising=False)

    assert config.database_name() == "knowledge_library"
    assert config.admin_password() == "change-me"
    assert config.admin_header_name() == "x-admin-password"
    assert config.admin_hash() == "#admin"
    assert config.default_site_title() == "Knowledge Library"
    assert config.log_level_name() == "INFO"
    assert config.port() == 8000
    assert config.api_base_url() == "http://localhost:8000"


def test_console_password_falls_back_to_admin_password(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "server-side")

    assert config.admin_console_password() == "server-side"

    monkeypatch.setenv("ADMIN_CONSOLE_PASSWORD", "client-side")
    assert config.admin_console_password() == "client-side"


def test_overrides_are_normalised(monkeypatch):
    monkeypatch.setenv("ADMIN_HEADER_NAME", "X-Library-Key")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("PORT", "9000")

    assert config.admin_header_name() == "x-library-key"
    assert config.log_level_name() == "DEBUG"
    assert config.port() == 9000


def test_reader_cookie_lives_ten_years():
    assert config.READER_COOKIE_MAX_AGE == 315360000
