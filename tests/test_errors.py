"""Tests for the unhandled-error response."""
import pytest
from fastapi.testclient import TestClient

import marketplace.main as main_module
from marketplace.api.deps import get_product_service
from marketplace.config import Settings
from marketplace.main import app

from conftest import auth_headers


class BrokenProductService:
    def list_by_owner(self, owner_id):
        raise RuntimeError("connection pool exhausted")


@pytest.fixture
def broken_client(client):
    app.dependency_overrides[get_product_service] = BrokenProductService
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_product_service, None)


def test_environment_defaults_to_production(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.ENVIRONMENT == "production"
    assert settings.is_development is False


def test_server_error_hides_details(broken_client, user_token):
    response = broken_client.get("/api/products", headers=auth_headers(user_token))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server Error"}


def test_server_error_shows_details_in_development(broken_client, user_token, monkeypatch):
    monkeypatch.setattr(main_module, "settings", Settings(ENVIRONMENT="development"))

    response = broken_client.get("/api/products", headers=auth_headers(user_token))

    assert response.status_code == 500
    assert response.json()["message"] == "connection pool exhausted"
