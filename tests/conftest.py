"""
tests/conftest.py -- Shared fixtures for credential service tests.

This module provides:
  - make_settings(): Settings pointing at an isolated in-memory DB, low bcrypt cost
  - store: a real CredentialStore on a fresh in-memory SQLite DB
  - client: TestClient over create_app() wired to that store
  - failing_client: TestClient over an app whose store is a MagicMock

Design: TestClient runs blocking work in a thread pool, and an in-memory
SQLite DB lives only as long as its connection. The store fixture therefore
uses StaticPool, so every worker thread shares the one connection that holds
the schema. Each test gets its own engine, so tests never see each other's rows.

bcrypt cost 4 is the minimum bcrypt accepts; it keeps hashing fast in tests
without changing any code path.
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from api.main import create_app
from auth.store import CredentialStore
from core.config import Settings


def make_settings(**overrides) -> Settings:
    """Build Settings for tests, ignoring any HASH_SALT in the developer's environment."""
    values = {
        "database_url": "sqlite://",
        "hash_rounds": 4,
        "hash_salt": "",
        "static_dir": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store(settings: Settings) -> Generator[CredentialStore, None, None]:
    s = CredentialStore(settings.database_url, poolclass=StaticPool)
    yield s
    s.close()


@pytest.fixture
def client(settings: Settings, store: CredentialStore) -> Generator[TestClient, None, None]:
    """TestClient running the real app against the `store` fixture."""
    app = create_app(settings, store=store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture
def mock_store() -> MagicMock:
    return MagicMock(spec=CredentialStore)


@pytest.fixture
def failing_client(settings: Settings, mock_store: MagicMock) -> Generator[TestClient, None, None]:
    """TestClient whose store is a MagicMock; tests configure side effects on `mock_store`."""
    app = create_app(settings, store=mock_store)
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c
