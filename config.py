"""Environment-driven settings for the Knowledge Library backend.

Every value is read on access so tests and deployments can override them
through the environment without reloading modules.
"""
from __future__ import annotations

import os

DEFAULT_DATABASE_NAME = "knowledge_library"
DEFAULT_ADMIN_PASSWORD = "change-me"
DEFAULT_ADMIN_HEADER = "x-admin-password"
DEFAULT_ADMIN_HASH = "#admin"
DEFAULT_SITE_TITLE = "Knowledge Library"
DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_LOG_LEVEL = "INFO"

# Ten years, in seconds.
READER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365 * 10


def _raw_env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val is not None else default


def database_url() -> str | None:
    return _raw_env("DATABASE_URL")


def database_name() -> str:
    return _raw_env("DATABASE_NAME", DEFAULT_DATABASE_NAME)  # type: ignore[return-value]


def admin_password() -> str:
    return _raw_env("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)  # type: ignore[return-value]


def admin_header_name() -> str:
    return _raw_env("ADMIN_HEADER_NAME", DEFAULT_ADMIN_HEADER).lower()  # type: ignore[union-attr]


def admin_hash() -> str:
    return _raw_env("ADMIN_HASH", DEFAULT_ADMIN_HASH)  # type: ignore[return-value]


def admin_console_password() -> str:
    """Password literal the admin console unlocks with."""
    return _raw_env("ADMIN_CONSOLE_PASSWORD", admin_password())  # type: ignore[return-value]


def api_base_url() -> str:
    return _raw_env("API_BASE_URL", DEFAULT_API_BASE_URL)  # type: ignore[return-value]


def default_site_title() -> str:
    return _raw_env("DEFAULT_SITE_TITLE", DEFAULT_SITE_TITLE)  # type: ignore[return-value]


def log_level_name() -> str:
    return _raw_env("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()  # type: ignore[union-attr]


def port() -> int:
    return int(_raw_env("PORT", "8000"))  # type: ignore[arg-type]


__all__ = [
    "READER_COOKIE_MAX_AGE",
    "database_url",
    "database_name",
    "admin_password",
    "admin_header_name",
    "admin_hash",
    "admin_console_password",
    "api_base_url",
    "default_site_title",
    "log_level_name",
    "port",
]
