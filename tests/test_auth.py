# tests/test_auth.py
def test_register_short_password(client):
    r = client.post("/api/auth/register", json={
        "email": "short@example.com", "name": "A",
        "password": "123"
    })
    assert r.status_code == 400
    assert "error" in r.json()


def test_register_invalid_email(client):
    r = client.post("/api/auth/register", json={
        "email": "not-an-email", "name": "A", "password": "StrongPass1"
    })
    assert r.status_code == 400


def test_register_returns_user_without_password(client):
    r = client.post("/api/auth/register", json={
        "email": "Alice@Example.com", "name": "Alice", "password": "secret123"
    })
    assert r.status_code == 201
    body = r.json()
    assert body["email"] == "alice@example.com"
    assert body["name"] == "Alice"
    assert "password" not in body
    assert "password_hash" not in body


def test_register_same_email_twice_conflicts(client):
    payload = {"email": "dup@example.com", "name": "Dup", "password": "secret123"}
    assert client.post("/api/auth/register", json=payload).status_code == 201

    r = client.post("/api/auth/register", json={**payload, "email": "DUP@example.com"})
    assert r.status_code == 409
    assert r.json() == {"error": "email already registered"}


def test_register_and_login_ok(client):
    r = client.post("/api/auth/register", json={
        "email": "farida@example.com", "name": "Farida", "password": "StrongPass1"
    })
    assert r.status_code == 201

    r = client.post("/api/auth/login", json={"email": "farida@example.com", "password": "StrongPass1"})
    assert r.status_code == 200
    body = r.json()
    assert body["access_token"]
    assert body["refresh_token"]
    assert body["access_token"] != body["refresh_token"]
    assert body["token_type"] == "bearer"


def test_login_failures_are_indistinguishable(client, create_user_and_token):
    create_user_and_token("known@example.com", password="StrongPass1")

    wrong_password = client.post(
        "/api/auth/login", json={"email": "known@example.com", "password": "nope-nope"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "StrongPass1"}
    )
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "invalid email or password"}
    assert wrong_password.headers["www-authenticate"] == "Bearer"


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "missing bearer token"}


def test_me_and_profile_edit(client, owner_headers):
    r = client.get("/api/auth/me", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["email"] == "owner@example.com"

    r = client.patch("/api/auth/me", headers=owner_headers, json={"name": "Renamed"})
    assert r.status_code == 200
    assert r.json()["name"] == "Renamed"
    assert client.get("/api/auth/me", headers=owner_headers).json()["name"] == "Renamed"


def test_refresh_token_is_not_an_access_token(client, create_user_and_token):
    create_user_and_token("refresh@example.com", password="StrongPass1")
    tokens = client.post(
        "/api/auth/login", json={"email": "refresh@example.com", "password": "StrongPass1"}
    ).json()

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert r.status_code == 401


def test_garbage_token_rejected(client):
    r = client.get("/api/tasks", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401
    assert r.json() == {"error": "invalid token"}


def test_expired_token_rejected(client, app):
    from datetime import timedelta

    from taskmanager.tokens import TokenManager

    expired = TokenManager(
        app.state.settings.JWT_SECRET, access_ttl=timedelta(seconds=-30)
    ).generate_access_token(1, "someone@example.com")
    r = client.get("/api/tasks", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
    assert r.json() == {"error": "token has expired"}


def test_token_for_missing_user_rejected(client, app):
    from taskmanager.tokens import TokenManager

    token = TokenManager(app.state.settings.JWT_SECRET).generate_access_token(999, "ghost@example.com")
    r = client.post("/api/tasks", json={"title": "orphan"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json() == {"error": "user no longer exists"}


def test_blank_name_rejected(client, owner_headers):
    r = client.post("/api/auth/register", json={
        "email": "blank@example.com", "name": "   ", "password": "StrongPass1"
    })
    assert r.status_code == 400

    r = client.patch("/api/auth/me", headers=owner_headers, json={"name": "  "})
    assert r.status_code == 400
    assert client.get("/api/auth/me", headers=owner_headers).json()["name"] == "Test User"
