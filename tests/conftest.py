"""Shared fixtures: an in-memory MongoDB and a TestClient bound to it."""

from __future__ import annotations

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main

ADMIN_PASSWORD = "test-secret"


@pytest.fixture(autouse=True)
def library_env(monkeypatch):
    """Pin the admin secret and clear other overrides."""
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    for var in (
        "ADMIN_HEADER_NAME",
        "ADMIN_CONSOLE_PASSWORD",
        "ADMIN_HASH",
        "DEFAULT_SITE_TITLE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mongo_db(monkeypatch):
    db = mongomock.MongoClient()["library_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def client(mongo_db):
    return TestClient(main.app)


@pytest.fixture
def admin_headers():
    return {"x-admin-password": ADMIN_PASSWORD}
