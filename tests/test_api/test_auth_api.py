"""Tests for login, register and the bearer token check over HTTP."""
from __future__ import annotations

from helpdesk.rules import Role


def test_health_is_public(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_login_returns_token_usable_on_me(client, make, test_password):
    user = make.user(Role.IT_PERSONNEL, email="tech@example.com")

    response = client.post("/api/auth/login", json={"email": "tech@example.com", "password": test_password})
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == user.id

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["role"] == "it_personnel"


def test_login_with_wrong_password(client, make):
    make.user(email="tech@example.com")
    response = client.post("/api/auth/login", json={"email": "tech@example.com", "password": "wrong-pass"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_register_creates_employee(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "New Person", "email": "new@example.com", "password": "abcdef"},
    )
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "employee"


def test_register_rejects_short_password(client):
    response = client.post(
        "/api/auth/register",
        json={"name": "New Person", "email": "new@example.com", "password": "abc"},
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_missing_token_is_401(client):
    response = client.get("/api/tickets")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


def test_malformed_header_is_401(client):
    response = client.get("/api/tickets", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_token_for_deleted_user_is_401(client, make, auth_headers, db_session):
    user = make.user()
    headers = auth_headers(user)
    db_session.delete(user)
    db_session.commit()

    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_stored_role_wins_over_token_role(client, make, auth_headers, db_session):
    user = make.user(Role.ADMIN)
    headers = auth_headers(user)
    user.role = Role.EMPLOYEE
    db_session.commit()

    response = client.post("/api/departments", json={"name": "Legal"}, headers=headers)
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "only admins may manage departments"
