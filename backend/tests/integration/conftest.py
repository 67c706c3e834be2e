"""Fixtures for tests that run the full application (lifespan included)."""

import pytest
from fastapi.testclient import TestClient

from registers.config import get_settings
from registers.main import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def login(client: TestClient):
    """Log a user in and return headers carrying their session cookie.

    The client's own cookie jar is cleared so several users can act
    through one client.
    """
    cookie_name = get_settings().session_cookie_name

    def _login(username: str = "admin", password: str = "admin123") -> dict[str, str]:
        response = client.post("/api/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        token = response.cookies[cookie_name]
        client.cookies.clear()
        return {"Cookie": f"{cookie_name}={token}"}

    return _login
