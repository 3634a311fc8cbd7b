"""
Error Handling Tests

Tests:
1. Database failures surface as 503 StorageUnavailable
2. Unexpected exceptions become a generic 500
3. 500 detail is only exposed in development
4. Unknown routes get a JSON 404

Run with: pytest tests/test_errors.py -v
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError

from taxfiler.core.config import settings
from taxfiler.core.database import get_db
from taxfiler.core.errors import StorageUnavailable
from taxfiler.main import app
from taxfiler.modules.accounts import services as account_services

from conftest import DEFAULT_PASSWORD


@pytest.fixture
def lenient_client(client):
    """Client that returns 500 responses instead of re-raising."""
    return TestClient(app, raise_server_exceptions=False)


def fail_login(*args, **kwargs):
    raise RuntimeError("password backend exploded")


# ============================================================================
# Storage unavailable
# ============================================================================

class TestStorageUnavailable:

    def test_missing_tables_return_503(self, client):
        # The application engine has no tables in the test environment
        app.dependency_overrides.pop(get_db)

        response = client.post("/api/auth/login", json={
            "email": "filer@example.com",
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "message": "Storage temporarily unavailable, please retry",
        }

    @pytest.mark.parametrize("error", [
        PoolTimeoutError("QueuePool limit of size 5 overflow 0 reached"),
        OperationalError("SELECT 1", {}, Exception("connection refused")),
    ])
    def test_get_db_maps_database_errors(self, error):
        dependency = get_db()
        next(dependency)

        with pytest.raises(StorageUnavailable):
            dependency.throw(error)


# ============================================================================
# Unexpected errors
# ============================================================================

class TestUnexpectedErrors:

    def test_detail_hidden_outside_development(self, lenient_client, make_user, monkeypatch):
        make_user()
        monkeypatch.setattr(account_services, "authenticate", fail_login)

        response = lenient_client.post("/api/auth/login", json={
            "email": "filer@example.com",
            "password": DEFAULT_PASSWORD,
        })

        assert settings.SHOW_ERROR_DETAIL is False
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Something went wrong!",
            "error": "Internal server error",
        }

    def test_detail_shown_in_development(self, lenient_client, make_user, monkeypatch):
        make_user()
        monkeypatch.setattr(account_services, "authenticate", fail_login)
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")

        response = lenient_client.post("/api/auth/login", json={
            "email": "filer@example.com",
            "password": DEFAULT_PASSWORD,
        })

        assert response.status_code == 500
        assert response.json()["error"] == "password backend exploded"


def test_unknown_route(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route GET /api/nowhere not found"}
