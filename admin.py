"""Shared-secret guard for the admin API.

The admin console forwards the password it was unlocked with in a request
header; the server compares it to ``ADMIN_PASSWORD`` on every admin call.
"""
from __future__ import annotations

from typing import Mapping

from fastapi import HTTPException, Request

import config
from errors import AdminAuthError


def get_admin_password_header_name() -> str:
    return config.admin_header_name()


def assert_admin_from_headers(headers: Mapping[str, str]) -> None:
    """Raise AdminAuthError unless the secret header matches the admin password."""
    supplied = headers.get(get_admin_password_header_name())
    if not supplied or supplied != config.admin_password():
        raise AdminAuthError("Missing or invalid admin password")


def require_admin(request: Request) -> None:
    """FastAPI dependency guarding every ``/api/admin`` route."""
    try:
        assert_admin_from_headers(request.headers)
    except AdminAuthError:
        raise HTTPException(status_code=401, detail="Unauthorized")
