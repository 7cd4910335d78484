"""
API tests for registration, login and bearer-token auth.
"""

import pytest


def _login(client, email="alice@example.com", password="correct-horse-battery"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_returns_usable_token(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "alice@example.com"
    assert "password_hash" not in response.json()


def test_duplicate_email_conflicts(client, auth_headers):
    response = client.post(
        "/api/auth/register", json={"email": "ALICE@example.com", "password": "another-password"}
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


@pytest.mark.parametrize("password", ["short", "x" * 73])
def test_password_length_enforced(client, password):
    response = client.post("/api/auth/register", json={"email": "carol@example.com", "password": password})
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_login_rotates_token(client, auth_headers):
    response = _login(client)
    assert response.status_code == 200
    new_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    assert client.get("/api/auth/me", headers=new_headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401


def test_bad_credentials(client, auth_headers):
    wrong_password = _login(client, password="not-the-password")
    unknown_user = _login(client, email="nobody@example.com")

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {
        "error": "Invalid email or password.",
        "kind": "authentication_required",
    }


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer nope"}, {"Authorization": "Basic abc"}])
def test_unauthenticated_requests(client, headers):
    response = client.get("/api/applications", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "kind": "authentication_required"}


def test_health_is_public(client):
    response = client.get("/")
    assert response.status_code == 200
