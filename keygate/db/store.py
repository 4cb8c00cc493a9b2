"""SQLAlchemy-backed implementation of the entry protocol's secret store."""

from sqlalchemy.ext.asyncio import AsyncSession

from keygate.crypto.keys import decrypt_secret
from keygate.db import repo_company, repo_keys, repo_secrets, repo_tokens, repo_user
from keygate.entry.types import CompanyRecord, UserRecord


class SqlSecretStore:
    """Reads company, user and key material through one request session."""

    def __init__(self, session: AsyncSession, fernet_key: str) -> None:
        self._session = session
        self._fernet_key = fernet_key

    async def get_company_by_id(self, company_id: int) -> CompanyRecord | None:
        entity = await repo_company.get_company_by_id(self._session, company_id)
        return CompanyRecord.model_validate(entity) if entity else None

    async def get_company_by_name(self, name: str) -> CompanyRecord | None:
        entity = await repo_company.get_company_by_name(self._session, name)
        return CompanyRecord.model_validate(entity) if entity else None

    async def get_active_secret(self, company_id: int) -> str | None:
        """Return the decrypted active secret, or None if there is none."""
        entity = await repo_secrets.get_active_secret(self._session, company_id)
        if entity is None or not entity.jwt:
            return None
        return decrypt_secret(entity.jwt, self._fernet_key)

    async def find_user_by_phone(
        self, company_id: int, phone: str
    ) -> UserRecord | None:
        entity = await repo_user.find_user_by_phone(self._session, company_id, phone)
        return UserRecord.model_validate(entity) if entity else None

    async def find_user_by_name(
        self, company_id: int, first_name: str, last_name: str
    ) -> UserRecord | None:
        entity = await repo_user.find_user_by_name(
            self._session, company_id, first_name, last_name
        )
        return UserRecord.model_validate(entity) if entity else None

    async def get_verification_key(self, user_id: int) -> str | None:
        entity = await repo_keys.get_verification_key(self._session, user_id)
        return entity.key_value if entity else None

    async def insert_issued_token(self, user_id: int, token: str) -> None:
        await repo_tokens.insert_issued_token(self._session, user_id, token)
