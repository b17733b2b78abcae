"""API tests for registration, login and password management."""

import pytest

from villa_api.core.config import settings
from villa_api.core.security import create_password_reset_token

COOKIE = settings.session_cookie_name


def _session_cookie(response) -> str:
    return response.cookies.get(COOKIE)


@pytest.mark.asyncio
async def test_register_logs_in(test_client, outbox):
    """Test registration returns the user without its password and sets the session cookie."""
    response = await test_client.post(
        "/api/register",
        json={
            "username": "lbianchi",
            "password": "segreta1",
            "email": "laura@mail.it",
            "fullName": "Laura Bianchi",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == "lbianchi"
    assert data["fullName"] == "Laura Bianchi"
    assert data["isAdmin"] is False
    assert "password" not in data
    assert data["createdAt"].endswith("Z")

    assert _session_cookie(response)
    assert "httponly" in response.headers["set-cookie"].lower()

    me = await test_client.get("/api/user", headers={"Cookie": f"{COOKIE}={_session_cookie(response)}"})
    assert me.status_code == 200
    assert me.json()["id"] == data["id"]


@pytest.mark.asyncio
async def test_register_duplicate_username(test_client, guest_user):
    response = await test_client.post(
        "/api/register",
        json={"username": "mrossi", "password": "segreta1", "email": "nuovo@mail.it"},
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Username already exists"
    assert data["status"] == 400


@pytest.mark.asyncio
async def test_register_invalid_payload(test_client):
    response = await test_client.post(
        "/api/register",
        json={"username": "ab", "password": "x", "email": "non-una-email"},
    )

    assert response.status_code == 400
    data = response.json()
    assert data["title"] == "Validation Error"
    assert {v["path"] for v in data["violations"]} == {"username", "password", "email"}


@pytest.mark.asyncio
async def test_login_returns_token_and_cookie(test_client, guest_user):
    response = await test_client.post("/api/login", json={"username": "mrossi", "password": "vacanza2025"})

    assert response.status_code == 200
    data = response.json()
    assert data["user"]["username"] == "mrossi"
    assert data["token"]
    assert _session_cookie(response)

    me = await test_client.get("/api/user", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "mario.rossi@mail.it"


@pytest.mark.asyncio
async def test_login_wrong_password(test_client, guest_user):
    response = await test_client.post("/api/login", json={"username": "mrossi", "password": "sbagliata"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_current_user_requires_auth(test_client):
    response = await test_client.get("/api/user")

    assert response.status_code == 401
    assert response.json()["error"] == "Not authenticated"


@pytest.mark.asyncio
async def test_invalid_bearer_token(test_client):
    response = await test_client.get("/api/user", headers={"Authorization": "Bearer non.valido.token"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_ends_session(test_client, guest_user):
    login = await test_client.post("/api/login", json={"username": "mrossi", "password": "vacanza2025"})
    cookie = {"Cookie": f"{COOKIE}={_session_cookie(login)}"}

    response = await test_client.post("/api/logout", headers=cookie)

    assert response.status_code == 200
    assert response.json() == {"message": "Logged out"}
    assert (await test_client.get("/api/user", headers=cookie)).status_code == 401


@pytest.mark.asyncio
async def test_request_password_reset_same_answer(test_client, guest_user, outbox):
    """Test the reset request answers identically for known and unknown emails."""
    known = await test_client.post("/api/request-password-reset", json={"email": "mario.rossi@mail.it"})
    unknown = await test_client.post("/api/request-password-reset", json={"email": "nessuno@mail.it"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(outbox.emails()) == 1
    assert "reset-password?token=" in outbox.emails()[0]["content"][0]["value"]


@pytest.mark.asyncio
async def test_reset_password_direct(test_client, guest_user, guest_headers):
    response = await test_client.post(
        "/api/reset-password-direct",
        json={"email": "mario.rossi@mail.it", "newPassword": "nuovissima"},
        headers=guest_headers,
    )
    assert response.status_code == 200

    login = await test_client.post("/api/login", json={"username": "mrossi", "password": "nuovissima"})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_reset_password_direct_other_user_forbidden(test_client, guest_headers, admin_user):
    response = await test_client.post(
        "/api/reset-password-direct",
        json={"email": "gestore@mail.it", "newPassword": "rubata123"},
        headers=guest_headers,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_reset_password_bad_token(test_client):
    response = await test_client.post(
        "/api/reset-password",
        json={"token": "scaduto", "newPassword": "nuovapass"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired reset token"


@pytest.mark.asyncio
async def test_reset_token_works_once(test_client, guest_user):
    token = create_password_reset_token(guest_user)

    first = await test_client.post("/api/reset-password", json={"token": token, "newPassword": "nuovapass"})
    second = await test_client.post("/api/reset-password", json={"token": token, "newPassword": "ancora-una"})

    assert first.status_code == 200
    assert second.status_code == 400
    login = await test_client.post("/api/login", json={"username": "mrossi", "password": "nuovapass"})
    assert login.status_code == 200
