"""Tests for registration, password login, and session handling."""
import jwt
import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from formflow.core.config import settings
from formflow.core.deps import COOKIE_NAME
from formflow.db.models import User

CSRF = {"X-Requested-With": "XMLHttpRequest"}


@pytest.mark.asyncio
async def test_register_creates_account(client: AsyncClient, db: Session):
    response = await client.post(
        "/auth/register",
        json={"email": "  New.User@Example.com ", "password": "hunter22", "name": "New  User"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Registration successful"

    user = db.query(User).filter(User.email == "new.user@example.com").one()
    assert str(user.id) == data["user_id"]
    assert user.name == "New User"
    assert user.password_hash != "hunter22"
    # Registration does not sign in
    assert COOKIE_NAME not in response.cookies


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,detail",
    [
        ({"email": "", "password": "hunter22"}, "Email and password are required"),
        ({"email": "a@b.com", "password": ""}, "Email and password are required"),
        ({"email": "not-an-email", "password": "hunter22"}, "Invalid email format"),
        ({"email": "a@example.com", "password": "123"}, "Password must be at least 6 characters"),
    ],
)
async def test_register_validation(client: AsyncClient, payload, detail):
    response = await client.post("/auth/register", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == detail


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client: AsyncClient, test_user: User):
    response = await client.post(
        "/auth/register",
        json={"email": test_user.email.upper(), "password": "hunter22"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Email is already registered"


@pytest.mark.asyncio
async def test_login_sets_session_cookie(client: AsyncClient, test_user: User, user_password: str):
    response = await client.post(
        "/auth/login", json={"email": test_user.email, "password": user_password}
    )
    assert response.status_code == 200
    assert response.json()["email"] == test_user.email
    assert COOKIE_NAME in response.cookies

    me = await client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == str(test_user.id)


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user: User):
    response = await client.post(
        "/auth/login", json={"email": test_user.email, "password": "wrong-password"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient, user_password: str):
    response = await client.post(
        "/auth/login", json={"email": "ghost@example.com", "password": user_password}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_session(client: AsyncClient):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


@pytest.mark.asyncio
async def test_invalid_session_cookie_rejected(client: AsyncClient):
    client.cookies.set(COOKIE_NAME, "garbage")
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_session_with_malformed_subject_rejected(client: AsyncClient):
    token = jwt.encode(
        {"sub": "not-a-uuid", "token_version": 1}, settings.JWT_SECRET, algorithm="HS256"
    )
    client.cookies.set(COOKIE_NAME, token)
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid session"


@pytest.mark.asyncio
async def test_disabled_account_rejected(authed_client: AsyncClient, test_user: User, db: Session):
    test_user.is_active = False
    db.commit()
    response = await authed_client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Account disabled"


@pytest.mark.asyncio
async def test_logout_requires_csrf_header(client: AsyncClient):
    response = await client.post("/auth/logout")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_logout_clears_cookie(authed_client: AsyncClient):
    response = await authed_client.post("/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out"
    assert COOKIE_NAME in response.headers.get("set-cookie", "")


@pytest.mark.asyncio
async def test_update_profile(authed_client: AsyncClient):
    response = await authed_client.put("/auth/profile", json={"name": "  Renamed   Author "})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed Author"

    response = await authed_client.put("/auth/profile", json={"name": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Name is required"


@pytest.mark.asyncio
async def test_change_password_revokes_old_sessions(
    authed_client: AsyncClient, client: AsyncClient, test_auth, user_password: str
):
    response = await authed_client.put(
        "/auth/password",
        json={"current_password": user_password, "new_password": "brand-new-pass"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password changed"
    # The caller gets a fresh cookie carrying the new token version
    assert COOKIE_NAME in response.cookies

    # The old token carries a stale token_version
    client.cookies.set(COOKIE_NAME, test_auth.token)
    stale = await client.get("/auth/me")
    assert stale.status_code == 401
    assert stale.json()["detail"] == "Session revoked"


@pytest.mark.asyncio
async def test_change_password_wrong_current(authed_client: AsyncClient):
    response = await authed_client.put(
        "/auth/password",
        json={"current_password": "nope-nope", "new_password": "brand-new-pass"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Current password is incorrect"
