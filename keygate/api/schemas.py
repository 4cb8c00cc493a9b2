"""Pydantic schemas for the admin API."""

from datetime import datetime
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from keygate.crypto.types import SigningAlgorithm

MAX_COMPANY_NAME = 200
MAX_PERSON_NAME = 100
MAX_ROLE = 50
MAX_PHONE = 50
MAX_SECRET = 8192


def _normalize_callback_url(value: object) -> str | None:
    """Accept an absolute http(s) URL; empty or null clears the field."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("callback_url must be an absolute http(s) URL or null")
    value = value.strip()
    if not value:
        return None
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError("callback_url must be an absolute http(s) URL or null")
    return value


def _require_text(value: object, field: str, limit: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} is required")
    value = value.strip()
    if len(value) > limit:
        raise ValueError(f"{field} is too long (max {limit} chars)")
    return value


class CompanyCreatePayload(BaseModel):
    """Request body for POST /api/companies."""

    name: str
    callback_url: str | None = None
    jwt_alg: SigningAlgorithm | None = None
    token_ttl_seconds: PositiveInt | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: object) -> str:
        return _require_text(value, "Company name", MAX_COMPANY_NAME)

    @field_validator("callback_url", mode="before")
    @classmethod
    def _check_callback(cls, value: object) -> str | None:
        return _normalize_callback_url(value)


class CompanyPatchPayload(BaseModel):
    """Request body for PATCH /api/companies/{id}.

    Only fields present in the request body are applied.
    """

    name: str | None = None
    callback_url: str | None = None
    jwt_alg: SigningAlgorithm | None = None
    token_ttl_seconds: PositiveInt | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: object) -> str:
        return _require_text(value, "Company name", MAX_COMPANY_NAME)

    @field_validator("callback_url", mode="before")
    @classmethod
    def _check_callback(cls, value: object) -> str | None:
        return _normalize_callback_url(value)

    @field_validator("jwt_alg", "token_ttl_seconds", mode="before")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("value may not be null")
        return value

    def changes(self) -> dict[str, object]:
        """Column updates for the fields the caller actually sent."""
        updates: dict[str, object] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if isinstance(value, SigningAlgorithm):
                value = value.value
            updates[name] = value
        return updates


class CompanyResponse(BaseModel):
    """A company as returned by the admin API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    callback_url: str | None = None
    jwt_alg: str
    token_ttl_seconds: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreatePayload(BaseModel):
    """Request body for POST /api/companies/{id}/users."""

    first_name: str
    last_name: str
    phone_number: str
    role: str

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _check_name(cls, value: object) -> str:
        return _require_text(value, "Name", MAX_PERSON_NAME)

    @field_validator("phone_number", mode="before")
    @classmethod
    def _check_phone(cls, value: object) -> str:
        return _require_text(value, "phone_number", MAX_PHONE)

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value: object) -> str:
        return _require_text(value, "Role", MAX_ROLE)


class UserResponse(BaseModel):
    """A user as returned by the admin API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    first_name: str
    last_name: str
    phone_number: str
    role: str
    created_at: datetime | None = None


class UserWithCompanyResponse(UserResponse):
    """A user together with its company name."""

    company_name: str


class SecretPayload(BaseModel):
    """Request body for PUT /api/companies/{id}/secret."""

    jwt: str | None = Field(default=None, max_length=MAX_SECRET)

    @field_validator("jwt", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value


class SecretResponse(BaseModel):
    """A company's signing secret in plaintext."""

    id: int
    jwt: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class KeyResponse(BaseModel):
    """A user's verification key."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    key_value: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class IssuedTokenResponse(BaseModel):
    """One row of a user's token ledger."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    token: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SuccessResponse(BaseModel):
    """Acknowledges a delete."""

    success: bool = True
