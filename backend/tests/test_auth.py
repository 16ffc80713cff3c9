# tests/test_auth.py — Authentication, token revocation and role gates
import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, PASSWORD


def _registration(email="newuser@test.com", **overrides):
    body = {
        "name": "New User",
        "email": email,
        "password": "SecurePass123!",
        "password_confirmation": "SecurePass123!",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
class TestRegistration:
    async def test_register_success(self, client: AsyncClient):
        res = await client.post("/api/v1/auth/register", json=_registration())
        assert res.status_code == 201
        data = res.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["email"] == "newuser@test.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["company_id"] is None
        assert "password_hash" not in data["user"]

    async def test_register_short_password(self, client: AsyncClient):
        res = await client.post("/api/v1/auth/register", json=_registration(
            password="short", password_confirmation="short",
        ))
        assert res.status_code == 422

    async def test_register_confirmation_mismatch(self, client: AsyncClient):
        res = await client.post("/api/v1/auth/register", json=_registration(
            password_confirmation="Different123!",
        ))
        assert res.status_code == 422

    async def test_register_duplicate_email(self, client: AsyncClient):
        await client.post("/api/v1/auth/register", json=_registration("dupe@test.com"))
        res = await client.post("/api/v1/auth/register", json=_registration("dupe@test.com"))
        assert res.status_code == 409
        body = res.json()
        assert body["code"] == "TASK-DB-002"
        assert "email" in body["errors"]

    async def test_register_email_taken_in_other_case(self, client: AsyncClient, member):
        res = await client.post("/api/v1/auth/register", json=_registration("ALICE@acme.com"))
        assert res.status_code == 409
        assert "email" in res.json()["errors"]

    async def test_register_invalid_email(self, client: AsyncClient):
        res = await client.post("/api/v1/auth/register", json=_registration("not-an-email"))
        assert res.status_code == 422


@pytest.mark.asyncio
class TestLogin:
    async def test_login_success(self, client: AsyncClient, member):
        res = await client.post("/api/v1/auth/login", json={
            "email": "alice@acme.com",
            "password": PASSWORD,
        })
        assert res.status_code == 200
        data = res.json()
        assert "access_token" in data
        assert data["user"]["role"] == "user"
        assert data["user"]["company_id"] == member.company_id

    async def test_login_email_is_case_insensitive(self, client: AsyncClient, member):
        res = await client.post("/api/v1/auth/login", json={
            "email": "Alice@acme.com",
            "password": PASSWORD,
        })
        assert res.status_code == 200
        assert res.json()["user"]["id"] == member.id

    async def test_login_wrong_password(self, client: AsyncClient, member):
        res = await client.post("/api/v1/auth/login", json={
            "email": "alice@acme.com",
            "password": "WrongPassword123!",
        })
        assert res.status_code == 401
        assert res.json()["code"] == "TASK-AUTH-001"

    async def test_login_nonexistent_user(self, client: AsyncClient):
        res = await client.post("/api/v1/auth/login", json={
            "email": "nobody@test.com",
            "password": "SomePassword123!",
        })
        assert res.status_code == 401


@pytest.mark.asyncio
class TestTokens:
    async def test_me(self, client: AsyncClient, company_admin):
        res = await client.get("/api/v1/auth/me", headers=get_auth_headers(company_admin))
        assert res.status_code == 200
        data = res.json()
        assert data["email"] == "boss@acme.com"
        assert data["role"] == "company"
        assert data["company_id"] == company_admin.company_id

    async def test_access_without_token(self, client: AsyncClient):
        res = await client.get("/api/v1/auth/me")
        # HTTPBearer answers 403 on older FastAPI releases, 401 on newer ones
        assert res.status_code in (401, 403)

    async def test_access_with_invalid_token(self, client: AsyncClient):
        res = await client.get("/api/v1/auth/me", headers={
            "Authorization": "Bearer invalid.token.here"
        })
        assert res.status_code == 401

    async def test_refresh_token(self, client: AsyncClient):
        reg_res = await client.post("/api/v1/auth/register", json=_registration("refresh@test.com"))
        refresh_token = reg_res.json()["refresh_token"]

        res = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert res.status_code == 200
        assert "access_token" in res.json()

    async def test_refresh_rejects_access_token(self, client: AsyncClient):
        reg_res = await client.post("/api/v1/auth/register", json=_registration("wrongtype@test.com"))
        access_token = reg_res.json()["access_token"]

        res = await client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
        assert res.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, member):
        headers = get_auth_headers(member)
        res = await client.post("/api/v1/auth/logout", headers=headers)
        assert res.status_code == 200

        res = await client.get("/api/v1/auth/me", headers=headers)
        assert res.status_code == 401

    async def test_logout_revokes_paired_refresh_token(self, client: AsyncClient, member):
        login = await client.post("/api/v1/auth/login", json={"email": "alice@acme.com", "password": PASSWORD})
        tokens = login.json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        res = await client.post("/api/v1/auth/logout", headers=headers)
        assert res.status_code == 200

        res = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 401

    async def test_refresh_token_is_single_use(self, client: AsyncClient, member):
        login = await client.post("/api/v1/auth/login", json={"email": "alice@acme.com", "password": PASSWORD})
        refresh_token = login.json()["refresh_token"]

        first = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert first.status_code == 200
        second = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
        assert second.status_code == 401

    async def test_logout_after_refresh_ends_session(self, client: AsyncClient, member):
        login = await client.post("/api/v1/auth/login", json={"email": "alice@acme.com", "password": PASSWORD})
        refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": login.json()["refresh_token"]})
        tokens = refreshed.json()

        res = await client.post(
            "/api/v1/auth/logout", headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )
        assert res.status_code == 200

        for refresh_token in (login.json()["refresh_token"], tokens["refresh_token"]):
            res = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
            assert res.status_code == 401

    async def test_role_comes_from_store_not_token(self, client: AsyncClient, member, db_session):
        headers = get_auth_headers(member)
        await db_session.delete(member)
        await db_session.commit()

        res = await client.get("/api/v1/auth/me", headers=headers)
        assert res.status_code == 401


@pytest.mark.asyncio
class TestRoleGates:
    async def test_admin_routes_reject_company_role(self, client: AsyncClient, company_admin):
        res = await client.get("/api/v1/admin/companies", headers=get_auth_headers(company_admin))
        assert res.status_code == 403
        assert res.json()["detail"] == "This action is unauthorized."

    async def test_company_routes_reject_plain_user(self, client: AsyncClient, member):
        res = await client.get("/api/v1/company/tasks", headers=get_auth_headers(member))
        assert res.status_code == 403

    async def test_user_routes_reject_company_admin(self, client: AsyncClient, company_admin):
        res = await client.get("/api/v1/user/tasks", headers=get_auth_headers(company_admin))
        assert res.status_code == 403

    async def test_legacy_routes_open_to_every_role(self, client: AsyncClient, admin_user, company_admin, member):
        for user in (admin_user, company_admin, member):
            res = await client.get("/api/v1/tasks", headers=get_auth_headers(user))
            assert res.status_code == 200

    async def test_error_body_carries_request_id(self, client: AsyncClient, member):
        res = await client.get(
            "/api/v1/admin/companies",
            headers={**get_auth_headers(member), "X-Request-ID": "req-12345678"},
        )
        assert res.status_code == 403
        assert res.json()["request_id"] == "req-12345678"
        assert res.headers["X-Request-ID"] == "req-12345678"
