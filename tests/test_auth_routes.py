from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from catalog.core.config import AuthSettings, DatabaseSettings, Settings
from catalog_web.app import create_app
from helpers import auth_header


def test_signup_returns_a_token_for_the_new_user(client, services):
    res = client.post(
        "/signup", json={"username": "ana", "email": "ana@x.com", "password": "secret123"}
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert set(body) == {"id", "username", "token"}
    assert body["username"] == "ana"
    assert services.tokens.verify(body["token"])["id"] == body["id"]


def test_signup_stores_a_digest_not_the_password(client, services, signup):
    signup()
    stored = services.users.find_one(username="ana")
    assert stored.password != "secret123"
    assert services.hasher.compare("secret123", stored.password)


def test_signup_with_taken_username(client, signup):
    signup()
    res = client.post(
        "/signup", json={"username": "ana", "email": "other@x.com", "password": "secret123"}
    )
    assert res.status_code == 400
    body = res.json()
    assert body["field"] == "username"
    assert body["error"]["name"] == "ConflictError"


def test_signup_with_taken_email(client, signup):
    signup()
    res = client.post(
        "/signup", json={"username": "bob", "email": "ana@x.com", "password": "secret123"}
    )
    assert res.status_code == 400
    assert res.json()["field"] == "email"


@pytest.mark.parametrize(
    "payload",
    [
        {"username": "an", "email": "ana@x.com", "password": "secret123"},
        {"username": "a" * 21, "email": "ana@x.com", "password": "secret123"},
        {"username": "ana", "email": "not-an-email", "password": "secret123"},
        {"username": "ana", "email": "ana@x.com", "password": "short"},
        {"username": "ana", "email": "ana@x.com"},
    ],
)
def test_signup_rejects_invalid_payloads(client, services, payload):
    res = client.post("/signup", json=payload)
    assert res.status_code == 400
    assert res.json()["error"]["name"] == "ValidationError"
    assert services.users.find_all() == []


def test_malformed_json_body(client):
    res = client.post(
        "/signup", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert res.status_code == 400
    assert res.json()["error"]["name"] == "ValidationError"


def test_login_after_signup(client, services, signup):
    created = signup()
    res = client.post("/login", json={"email": "ana@x.com", "password": "secret123"})
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["username"] == "ana"
    assert services.tokens.verify(body["token"])["id"] == created["id"]


def test_login_with_wrong_password(client, signup):
    signup()
    res = client.post("/login", json={"email": "ana@x.com", "password": "wrong-password"})
    assert res.status_code == 401
    assert res.json()["message"] == "Password is incorrect"


def test_login_with_unknown_email(client):
    res = client.post("/login", json={"email": "ghost@x.com", "password": "secret123"})
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


def test_verify_restores_session_without_new_token(client, signup):
    created = signup()
    res = client.get("/login/verify", headers=auth_header(created["token"]))
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["user"] == {"id": created["id"], "username": "ana"}
    assert "token" not in body


def test_verify_without_authorization_header(client):
    res = client.get("/login/verify")
    assert res.status_code == 401
    error = res.json()["error"]
    assert error["name"] == "InvalidTokenError"
    assert "stack" not in error


def test_tampered_token_is_rejected_before_any_store_read(client, services, signup, monkeypatch):
    header, payload, signature = signup()["token"].split(".")
    lookups = []
    monkeypatch.setattr(services.users, "find_one", lambda **kw: lookups.append(kw))

    forged = ".".join([header, payload, signature[::-1]])
    res = client.get("/login/verify", headers=auth_header(forged))
    assert res.status_code == 401
    assert lookups == []


def test_expired_token(client, services, signup):
    created = signup()
    token = services.tokens.issue(created["id"], now=datetime.now(timezone.utc) - timedelta(days=1))
    res = client.get("/login/verify", headers=auth_header(token))
    assert res.status_code == 401
    assert res.json()["message"] == "Token has expired"


def test_token_of_deleted_user(client, services, signup):
    created = signup()
    services.users.destroy(created["id"])
    res = client.get("/login/verify", headers=auth_header(created["token"]))
    assert res.status_code == 401


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"message": "Server is running"}


def test_auth_failures_advertise_bearer_scheme(client):
    res = client.get("/login/verify", headers={"Authorization": "Bearer nonsense"})
    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"] == "Bearer"


def test_signup_without_token_secret_stores_nothing(tmp_path):
    settings = Settings(
        database=DatabaseSettings(url=f"sqlite:///{tmp_path / 'nosecret.db'}"),
        auth=AuthSettings(secret="", salt_rounds=4),
    )
    app = create_app(settings)
    with TestClient(app) as client:
        res = client.post(
            "/signup", json={"username": "ana", "email": "ana@x.com", "password": "secret123"}
        )
        assert res.status_code == 500
        assert res.json()["error"]["name"] == "ConfigError"
        assert app.state.services.users.find_all() == []
