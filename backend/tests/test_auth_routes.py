"""
Arroyyan Backend — Auth API Tests
===================================

What:  Register, login, logout, me and refresh through the HTTP layer.

What we test:
    ✅ Register validation, duplicate username → 409
    ✅ Passwords limited to 72 UTF-8 bytes → 400, not a hashing crash
    ✅ Login issues a token, a session row and a hashed refresh row
    ✅ Logout deletes the session row; the token stops working at once
    ✅ Missing / malformed / revoked tokens → 401 with distinct messages
    ✅ Role checks → 403
    ✅ Refresh cookie exchange
"""

import pytest
from sqlalchemy import func, select

from arroyyan.models import RefreshToken, User, UserSession
from arroyyan.security import create_access_token, token_digest


def _refresh_cookie(response) -> str:
    for header in response.headers.get_list("set-cookie"):
        if header.startswith("refreshToken="):
            return header.split(";", 1)[0].split("=", 1)[1]
    raise AssertionError("refreshToken cookie not set")


async def _count(session_factory, model, *conditions) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model).where(*conditions))
        return result.scalar_one()


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_creates_guest_by_default(self, client, session_factory):
        response = await client.post(
            "/api/auth/register",
            json={"username": "budi_s", "name": "Budi Santoso", "password": "rahasia1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["username"] == "budi_s"
        assert body["data"]["role"] == "guest"
        assert "password" not in body["data"]

        async with session_factory() as session:
            user = (await session.execute(select(User).where(User.username == "budi_s"))).scalar_one()
            assert user.password != "rahasia1"
            assert user.password.startswith("$2")

    @pytest.mark.asyncio
    async def test_register_duplicate_username_conflict(self, client, create_user):
        await create_user("budi_s", "guest")

        response = await client.post(
            "/api/auth/register",
            json={"username": "budi_s", "name": "Budi Lain", "password": "rahasia1"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_register_rejects_bad_username(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"username": "budi santoso!", "name": "Budi Santoso", "password": "rahasia1"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"
        assert any("username" in detail["loc"] for detail in body["details"])

    @pytest.mark.asyncio
    async def test_register_rejects_short_password(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"username": "budi", "name": "Budi Santoso", "password": "123"},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_rejects_password_over_72_bytes(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"username": "budi_s", "name": "Budi Santoso", "password": "é" * 40},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert any("password" in detail["loc"] for detail in body["details"])

    @pytest.mark.asyncio
    async def test_register_accepts_multibyte_password_within_limit(self, client):
        response = await client.post(
            "/api/auth/register",
            json={"username": "budi_s", "name": "Budi Santoso", "password": "é" * 36},
        )
        assert response.status_code == 201

        login = await client.post(
            "/api/auth/login", json={"username": "budi_s", "password": "é" * 36}
        )
        assert login.status_code == 200


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token_and_records_session(self, client, admin_user, session_factory):
        response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "secret123"}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"] == {
            "id": admin_user.id,
            "username": "admin",
            "name": "Admin Toko",
            "role": "admin",
        }
        assert await _count(session_factory, UserSession, UserSession.token == data["token"]) == 1

    @pytest.mark.asyncio
    async def test_login_sets_httponly_refresh_cookie_stored_as_digest(
        self, client, admin_user, session_factory
    ):
        response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "secret123"}
        )

        cookie_header = next(
            h for h in response.headers.get_list("set-cookie") if h.startswith("refreshToken=")
        ).lower()
        assert "httponly" in cookie_header
        assert "samesite=strict" in cookie_header
        assert "path=/" in cookie_header

        refresh_token = _refresh_cookie(response)
        async with session_factory() as session:
            stored = (
                await session.execute(
                    select(RefreshToken).where(RefreshToken.user_id == admin_user.id)
                )
            ).scalar_one()
        assert stored.token_hash == token_digest(refresh_token)
        assert stored.token_hash != refresh_token

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, admin_user):
        response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "salah123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_login_unknown_user_same_message(self, client):
        response = await client.post(
            "/api/auth/login", json={"username": "nobody", "password": "secret123"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"


class TestLogout:
    @pytest.mark.asyncio
    async def test_logout_deletes_session_row(self, client, admin_user, login, session_factory):
        token = await login("admin")
        headers = {"Authorization": f"Bearer {token}"}
        assert await _count(session_factory, UserSession, UserSession.token == token) == 1

        response = await client.post("/api/auth/logout", headers=headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert await _count(session_factory, UserSession, UserSession.token == token) == 0
        assert await _count(
            session_factory, RefreshToken, RefreshToken.user_id == admin_user.id
        ) == 0

    @pytest.mark.asyncio
    async def test_token_rejected_after_logout(self, client, admin_user, login):
        token = await login("admin")
        headers = {"Authorization": f"Bearer {token}"}
        await client.post("/api/auth/logout", headers=headers)

        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == "Session has been revoked or expired"

    @pytest.mark.asyncio
    async def test_logout_without_token_still_succeeds(self, client):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        cleared = [h for h in response.headers.get_list("set-cookie") if h.startswith("refreshToken=")]
        assert cleared

    @pytest.mark.asyncio
    async def test_logout_only_revokes_presented_session(self, client, admin_user, login):
        first = await login("admin")
        second = await login("admin")

        await client.post("/api/auth/logout", headers={"Authorization": f"Bearer {first}"})

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {second}"})
        assert response.status_code == 200


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_me_returns_profile(self, client, admin_headers):
        response = await client.get("/api/auth/me", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["username"] == "admin"
        assert data["role"] == "admin"
        assert "created_at" in data

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Token not found"

    @pytest.mark.asyncio
    async def test_non_bearer_scheme(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Basic YWRtaW46eA=="})

        assert response.status_code == 401
        assert response.json()["message"] == "Token not found"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_valid_jwt_without_session_row(self, client, admin_user):
        token, _ = create_access_token(admin_user.id, admin_user.username, admin_user.role)

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Session has been revoked or expired"

    @pytest.mark.asyncio
    async def test_role_mismatch_forbidden(self, client, guest_headers):
        response = await client.post(
            "/api/penjualan",
            headers=guest_headers,
            json={"payment_method": "cash", "paid_amount": 0, "items": [{"product_id": "x", "quantity": 1}]},
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "FORBIDDEN"
        assert body["message"] == "Access denied. Required role: admin or cashier"


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_issues_new_working_token(self, client, admin_user, session_factory):
        login_response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "secret123"}
        )
        refresh_token = _refresh_cookie(login_response)

        response = await client.post(
            "/api/auth/refresh", headers={"Cookie": f"refreshToken={refresh_token}"}
        )

        assert response.status_code == 200
        new_token = response.json()["data"]["token"]
        assert new_token != login_response.json()["data"]["token"]
        assert await _count(session_factory, UserSession, UserSession.user_id == admin_user.id) == 2

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_refresh_without_cookie(self, client):
        response = await client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token not found"

    @pytest.mark.asyncio
    async def test_refresh_rejected_after_logout(self, client, admin_user):
        login_response = await client.post(
            "/api/auth/login", json={"username": "admin", "password": "secret123"}
        )
        refresh_token = _refresh_cookie(login_response)
        access_token = login_response.json()["data"]["token"]
        await client.post("/api/auth/logout", headers={"Authorization": f"Bearer {access_token}"})

        response = await client.post(
            "/api/auth/refresh", headers={"Cookie": f"refreshToken={refresh_token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_access_token_cannot_be_used_as_refresh(self, client, admin_user, login):
        access_token = await login("admin")

        response = await client.post(
            "/api/auth/refresh", headers={"Cookie": f"refreshToken={access_token}"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"
