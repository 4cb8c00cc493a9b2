"""Tests for GET /api/auth/entry."""

import asyncio
from urllib.parse import parse_qs, urlsplit

import jwt
import pytest
from cryptography.fernet import Fernet
from fastapi import FastAPI
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.api.deps import load_settings
from keygate.core.settings import GateSettings
from keygate.crypto.keys import encrypt_secret, generate_secret
from keygate.db.models_company import CompanyEntity
from keygate.db.models_keys import SigningSecretEntity, VerificationKeyEntity
from keygate.db.models_user import UserEntity
from keygate.db.repo_tokens import count_user_tokens
from keygate.entry.protocol import EntryProtocol

CALLBACK = "https://app.example.com/cb"
PHONE = "+15550001"
KEY = "abc123"
SECRET = generate_secret()
ENTRY = "/api/auth/entry"


@pytest.fixture
async def company(db_session: AsyncSession, fernet_key: str) -> CompanyEntity:
    """Company 1 with an HS256 secret and a one-hour token lifetime."""
    entity = CompanyEntity(
        name="Acme",
        callback_url=CALLBACK,
        jwt_alg="HS256",
        token_ttl_seconds=3600,
    )
    db_session.add(entity)
    await db_session.flush()
    db_session.add(
        SigningSecretEntity(
            company_id=entity.id,
            jwt=encrypt_secret(SECRET, fernet_key),
            is_active=True,
        )
    )
    await db_session.flush()
    return entity


@pytest.fixture
async def user(db_session: AsyncSession, company: CompanyEntity) -> UserEntity:
    """User with phone PHONE and personal key KEY."""
    entity = UserEntity(
        company_id=company.id,
        first_name="Ada",
        last_name="Lovelace",
        phone_number=PHONE,
        role="driver",
    )
    db_session.add(entity)
    await db_session.flush()
    db_session.add(VerificationKeyEntity(user_id=entity.id, key_value=KEY))
    await db_session.flush()
    return entity


def _token_of(location: str) -> str:
    return parse_qs(urlsplit(location).query)["token"][0]


class TestEntryScenarios:
    """End-to-end behaviour of the entry endpoint."""

    async def test_valid_key_redirects_with_token(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        resp = await client.get(
            ENTRY,
            params={"company_id": str(company.id), "phone": PHONE, "key": KEY},
            follow_redirects=False,
        )
        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith(CALLBACK + "?token=")
        claims = jwt.decode(_token_of(location), SECRET, algorithms=["HS256"])
        assert claims["sub"] == str(user.id)
        assert await count_user_tokens(db_session, user.id) == 1

    async def test_wrong_key_is_unauthorized(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        user_id = user.id
        resp = await client.get(
            ENTRY,
            params={"company_id": str(company.id), "phone": PHONE, "key": "wrong"},
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid personal key"}
        assert await count_user_tokens(db_session, user_id) == 0

    async def test_missing_identifier_is_bad_request(
        self, client: AsyncClient, company: CompanyEntity
    ) -> None:
        resp = await client.get(
            ENTRY, params={"company_id": str(company.id), "key": KEY}
        )
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Missing user identifier (phone or first_name+last_name)"
        }

    async def test_unknown_company_is_not_found(
        self, client: AsyncClient, company: CompanyEntity
    ) -> None:
        resp = await client.get(
            ENTRY, params={"company_id": "999", "phone": PHONE, "key": KEY}
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Company not found"}

    @pytest.mark.parametrize("company_id", ["²", "99999999999999999999"])
    async def test_unparseable_company_id_is_not_found(
        self, client: AsyncClient, company: CompanyEntity, company_id: str
    ) -> None:
        resp = await client.get(
            ENTRY, params={"company_id": company_id, "phone": PHONE, "key": KEY}
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Company not found"}

    async def test_presented_token_short_circuits(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        first = await client.get(
            ENTRY,
            params={"company_id": str(company.id), "phone": PHONE, "key": KEY},
            follow_redirects=False,
        )
        token = _token_of(first.headers["location"])

        second = await client.get(
            ENTRY,
            params={"company_name": "Acme", "token": token},
            follow_redirects=False,
        )
        assert second.status_code == 302
        assert _token_of(second.headers["location"]) == token
        assert await count_user_tokens(db_session, user.id) == 1

    async def test_name_lookup(
        self,
        client: AsyncClient,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        resp = await client.get(
            ENTRY,
            params={
                "company_id": str(company.id),
                "first_name": "Ada",
                "last_name": "Lovelace",
                "key": KEY,
            },
            follow_redirects=False,
        )
        assert resp.status_code == 302

    async def test_missing_callback_is_server_misconfigured(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        company.callback_url = None
        await db_session.flush()
        resp = await client.get(
            ENTRY,
            params={"company_id": str(company.id), "phone": PHONE, "key": KEY},
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "Company callback_url not set"}

    async def test_missing_secret_is_server_misconfigured(
        self, client: AsyncClient, db_session: AsyncSession
    ) -> None:
        bare = CompanyEntity(name="Bare", callback_url=CALLBACK)
        db_session.add(bare)
        await db_session.flush()
        resp = await client.get(ENTRY, params={"company_id": str(bare.id)})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Active signing secret not found for company"}


class TestEntryFailures:
    """Unexpected failures surface as JSON server errors."""

    async def test_undecryptable_secret_is_server_error(
        self,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
        company: CompanyEntity,
        user: UserEntity,
    ) -> None:
        monkeypatch.setenv(
            "KEYGATE_SECRET_ENCRYPTION_KEY", Fernet.generate_key().decode()
        )
        resp = await client.get(
            ENTRY,
            params={"company_id": str(company.id), "phone": PHONE, "key": KEY},
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "Server error"}

    async def test_slow_store_times_out(
        self,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
        company: CompanyEntity,
    ) -> None:
        async def _slow_run(self: EntryProtocol, query: object) -> None:
            await asyncio.sleep(5)

        monkeypatch.setenv("KEYGATE_STORE_TIMEOUT_SECONDS", "0.05")
        monkeypatch.setattr(EntryProtocol, "run", _slow_run)
        resp = await client.get(ENTRY, params={"company_id": str(company.id)})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Store request timed out"}

    async def test_shares_the_admin_settings_loader(
        self,
        app: FastAPI,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
        company: CompanyEntity,
    ) -> None:
        async def _slow_run(self: EntryProtocol, query: object) -> None:
            await asyncio.sleep(5)

        monkeypatch.setattr(EntryProtocol, "run", _slow_run)
        app.dependency_overrides[load_settings] = lambda: GateSettings(
            store_timeout_seconds=0.05
        )
        resp = await client.get(ENTRY, params={"company_id": str(company.id)})
        assert resp.json() == {"error": "Store request timed out"}
