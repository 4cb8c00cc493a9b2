"""Tests for the user, verification key and token ledger admin endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.db.models_company import CompanyEntity
from keygate.db.models_user import UserEntity
from keygate.db.repo_tokens import insert_issued_token


@pytest.fixture
async def user(db_session: AsyncSession) -> UserEntity:
    company = CompanyEntity(name="Acme")
    db_session.add(company)
    await db_session.flush()
    entity = UserEntity(
        company_id=company.id,
        first_name="Ada",
        last_name="Lovelace",
        phone_number="+15550001",
        role="driver",
    )
    db_session.add(entity)
    await db_session.flush()
    return entity


class TestUsers:
    """Cross-company user listing and deletion."""

    async def test_list_includes_company_name(
        self, client: AsyncClient, admin_headers: dict[str, str], user: UserEntity
    ) -> None:
        resp = await client.get("/api/users", headers=admin_headers)
        assert resp.status_code == 200
        [row] = resp.json()
        assert row["id"] == user.id
        assert row["company_name"] == "Acme"

    async def test_requires_admin_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/users")
        assert resp.status_code == 401

    async def test_delete(
        self, client: AsyncClient, admin_headers: dict[str, str], user: UserEntity
    ) -> None:
        user_id = user.id
        resp = await client.delete(f"/api/users/{user_id}", headers=admin_headers)
        assert resp.json() == {"success": True}
        again = await client.delete(f"/api/users/{user_id}", headers=admin_headers)
        assert again.status_code == 404
        assert again.json() == {"error": "User not found"}


class TestVerificationKey:
    """Key issue, rotation and removal."""

    async def test_get_missing_key_is_null(
        self, client: AsyncClient, admin_headers: dict[str, str], user: UserEntity
    ) -> None:
        resp = await client.get(f"/api/users/{user.id}/key", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() is None

    async def test_put_creates_then_rotates(
        self, client: AsyncClient, admin_headers: dict[str, str], user: UserEntity
    ) -> None:
        url = f"/api/users/{user.id}/key"
        first = await client.put(url, headers=admin_headers)
        second = await client.put(url, headers=admin_headers)
        assert first.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["key_value"] != second.json()["key_value"]

        got = await client.get(url, headers=admin_headers)
        assert got.json()["key_value"] == second.json()["key_value"]

    async def test_put_for_unknown_user(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        resp = await client.put("/api/users/999/key", headers=admin_headers)
        assert resp.status_code == 404

    async def test_delete_key(
        self, client: AsyncClient, admin_headers: dict[str, str], user: UserEntity
    ) -> None:
        url = f"/api/users/{user.id}/key"
        await client.put(url, headers=admin_headers)
        resp = await client.delete(url, headers=admin_headers)
        assert resp.json() == {"success": True}
        again = await client.delete(url, headers=admin_headers)
        assert again.status_code == 404
        assert again.json() == {"error": "Key not found"}


class TestTokenLedger:
    """Ledger listing and row deletion."""

    async def test_list_newest_first(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers: dict[str, str],
        user: UserEntity,
    ) -> None:
        await insert_issued_token(db_session, user.id, "older")
        await insert_issued_token(db_session, user.id, "newer")
        resp = await client.get(f"/api/users/{user.id}/tokens", headers=admin_headers)
        assert [t["token"] for t in resp.json()] == ["newer", "older"]

    async def test_delete_token(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers: dict[str, str],
        user: UserEntity,
    ) -> None:
        row = await insert_issued_token(db_session, user.id, "tok")
        row_id = row.id
        resp = await client.delete(f"/api/tokens/{row_id}", headers=admin_headers)
        assert resp.json() == {"success": True}
        again = await client.delete(f"/api/tokens/{row_id}", headers=admin_headers)
        assert again.status_code == 404
        assert again.json() == {"error": "Token not found"}
