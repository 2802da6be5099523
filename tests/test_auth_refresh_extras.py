# File: /tests/test_auth_refresh_extras.py | Version: 1.1 | Title: Auth refresh + /auth/me + /auth/token form
from __future__ import annotations

from typing import Dict

from fastapi.testclient import TestClient


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_login_returns_refresh_and_me_and_refresh_flow(client: TestClient):
    email = "refresh@test.com"
    password = "Passw0rd!"

    r = client.post(
        "/auth/register",
        json={"email": email, "password": password, "full_name": "Ref Tester"},
    )
    assert r.status_code in (200, 201), r.text

    # Login (JSON)
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    body = r.json()
    assert (
        "access_token" in body
        and "refresh_token" in body
        and body.get("token_type") == "bearer"
    )
    access_1 = body["access_token"]
    refresh = body["refresh_token"]

    r = client.get("/auth/me", headers=_auth_headers(access_1))
    assert r.status_code == 200, r.text
    assert r.json().get("email") == email
    assert r.json().get("full_name") == "Ref Tester"

    # /auth/refresh -> new access token
    r = client.post("/auth/refresh", json={"refresh_token": refresh})
    assert r.status_code == 200, r.text
    access_2 = r.json()["access_token"]
    assert isinstance(access_2, str) and access_2

    # New access token works on a protected endpoint
    r = client.get("/lists/", headers=_auth_headers(access_2))
    assert r.status_code == 200, r.text


def test_refresh_token_is_not_an_access_token(client: TestClient):
    email = "swap@test.com"
    client.post("/auth/register", json={"email": email, "password": "Passw0rd!"})
    body = client.post("/auth/login", json={"email": email, "password": "Passw0rd!"}).json()

    assert client.get("/auth/me", headers=_auth_headers(body["refresh_token"])).status_code == 401
    assert client.post("/auth/refresh", json={"refresh_token": body["access_token"]}).status_code == 401


def test_oauth_token_form_returns_both_tokens(client: TestClient):
    email = "formflow@test.com"
    password = "Passw0rd!"

    client.post("/auth/register", json={"email": email, "password": password})

    # OAuth2 form-style login (/auth/token)
    r = client.post("/auth/token", data={"username": email, "password": password})
    assert r.status_code == 200, r.text
    body = r.json()
    assert (
        "access_token" in body
        and "refresh_token" in body
        and body.get("token_type") == "bearer"
    )
