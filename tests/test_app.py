"""
tests/test_app.py -- Integration tests for application assembly.

Covers:
  - GET /health: 200 with components, database "error" when the ping fails
  - Unknown paths render the {code, message} error shape
  - Optional static frontend mount, and that /auth still wins over it
  - Lifespan state: the store and the service built from it, nothing else
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.main import create_app
from auth.store import CredentialStore
from core.config import Settings


class TestHealth:
    def test_health_returns_200_with_components(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["components"] == {"app": "ok", "database": "ok"}

    def test_health_reports_database_error(self, failing_client: TestClient, mock_store: MagicMock) -> None:
        mock_store.ping.side_effect = OperationalError("SELECT 1", {}, Exception("unreachable"))
        resp = failing_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["components"]["database"] == "error"


class TestErrorShape:
    def test_unknown_path(self, client: TestClient) -> None:
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.json()["code"] == "http_404"


class TestStaticFrontend:
    def test_static_dir_served(self, tmp_path: Path, settings: Settings, store: CredentialStore) -> None:
        (tmp_path / "index.html").write_text("<html>frontend</html>")
        app = create_app(settings.model_copy(update={"static_dir": str(tmp_path)}), store=store)
        with TestClient(app) as client:
            resp = client.get("/")
            assert resp.status_code == 200
            assert "frontend" in resp.text

            auth = client.post("/auth", json={"op": "AUTH", "email": "a@x.com", "passwd": "p1"})
            assert auth.status_code == 200

    def test_missing_static_dir_is_ignored(self, tmp_path: Path, settings: Settings, store: CredentialStore) -> None:
        app = create_app(settings.model_copy(update={"static_dir": str(tmp_path / "absent")}), store=store)
        with TestClient(app) as client:
            assert client.get("/").status_code == 404


class TestLifespan:
    def test_state_holds_store_and_service(self, settings: Settings, store: CredentialStore) -> None:
        app = create_app(settings, store=store)
        with TestClient(app):
            assert app.state.store is store
            assert app.state.credential_service.store is store
            assert not hasattr(app.state, "settings")
