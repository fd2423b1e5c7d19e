from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalog.core.config import AuthSettings, DatabaseSettings, Settings
from catalog_web.app import create_app

SECRET = "test-secret-that-is-long-enough-for-hs256"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    # Cheapest bcrypt cost factor keeps the suite fast
    return Settings(
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'catalog.db'}"),
        auth=AuthSettings(secret=SECRET, salt_rounds=4, token_ttl_minutes=60),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def services(app):
    return app.state.services


@pytest.fixture
def signup(client):
    def _signup(username="ana", email="ana@x.com", password="secret123"):
        res = client.post(
            "/signup", json={"username": username, "email": email, "password": password}
        )
        assert res.status_code == 201, res.text
        return res.json()

    return _signup
