"""Type definitions for the entry protocol."""

from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, field_validator


class CompanyRecord(BaseModel):
    """Company fields the entry protocol reads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    callback_url: str | None = None
    jwt_alg: str = "HS256"
    token_ttl_seconds: int | None = None


class UserRecord(BaseModel):
    """User fields the entry protocol reads."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    first_name: str
    last_name: str
    phone_number: str
    role: str


class SecretStore(Protocol):
    """Read/append capability the entry protocol needs from storage."""

    async def get_company_by_id(self, company_id: int) -> CompanyRecord | None: ...

    async def get_company_by_name(self, name: str) -> CompanyRecord | None: ...

    async def get_active_secret(self, company_id: int) -> str | None: ...

    async def find_user_by_phone(
        self, company_id: int, phone: str
    ) -> UserRecord | None: ...

    async def find_user_by_name(
        self, company_id: int, first_name: str, last_name: str
    ) -> UserRecord | None: ...

    async def get_verification_key(self, user_id: int) -> str | None: ...

    async def insert_issued_token(self, user_id: int, token: str) -> None: ...


class EntryQuery(BaseModel):
    """Query parameters of the entry endpoint.

    Values are trimmed and empty strings become ``None``.
    """

    company_id: str | None = None
    company_name: str | None = None
    phone: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    key: str | None = None
    token: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @property
    def has_user_identifier(self) -> bool:
        return bool(self.phone) or bool(self.first_name and self.last_name)


class TokenCheck(StrEnum):
    """Result of checking a presented session token."""

    ABSENT = "absent"
    VALID = "valid"
    REJECTED = "rejected"


class EntryPath(StrEnum):
    """How a successful entry was granted."""

    TOKEN_REUSED = "token_reused"
    KEY_VERIFIED = "key_verified"


class EntryOutcome(BaseModel):
    """Successful entry: where to send the caller and with which token."""

    path: EntryPath
    token: str
    redirect_url: str
    company_id: int
    user_id: int | None = None
