"""Admin endpoints for companies, their users and their signing secret."""

import logging
from typing import Annotated

from cryptography.fernet import InvalidToken
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.api.deps import load_settings, require_admin_token
from keygate.api.schemas import (
    CompanyCreatePayload,
    CompanyPatchPayload,
    CompanyResponse,
    SecretPayload,
    SecretResponse,
    SuccessResponse,
    UserCreatePayload,
    UserResponse,
)
from keygate.core.settings import GateSettings
from keygate.crypto.keys import decrypt_secret, generate_secret
from keygate.db.engine import get_session
from keygate.db.models_keys import SigningSecretEntity
from keygate.db.repo_company import (
    CompanyCreateData,
    create_company,
    delete_company,
    get_company_by_id,
    list_companies,
    update_company,
)
from keygate.db.repo_secrets import delete_secret, get_secret, store_secret
from keygate.db.repo_user import UserCreateData, create_user, list_company_users

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/companies",
    tags=["companies"],
    dependencies=[Depends(require_admin_token)],
)

DbSession = Annotated[AsyncSession, Depends(get_session)]
Settings = Annotated[GateSettings, Depends(load_settings)]

MSG_COMPANY_NOT_FOUND = "Company not found"
MSG_SERVER_ERROR = "Server error"


def _secret_to_response(
    entity: SigningSecretEntity, fernet_key: str
) -> SecretResponse:
    try:
        plain = decrypt_secret(entity.jwt, fernet_key)
    except (InvalidToken, ValueError) as exc:
        logger.exception(
            "Cannot decrypt signing secret for company %s", entity.company_id
        )
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_SERVER_ERROR
        ) from exc
    return SecretResponse(
        id=entity.id,
        jwt=plain,
        is_active=entity.is_active,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )


async def _require_company(db: AsyncSession, company_id: int) -> None:
    if await get_company_by_id(db, company_id) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_COMPANY_NOT_FOUND)


@router.get("")
async def get_companies(db: DbSession) -> list[CompanyResponse]:
    """GET /api/companies -- all companies by name."""
    companies = await list_companies(db)
    return [CompanyResponse.model_validate(c) for c in companies]


@router.post("", status_code=status.HTTP_201_CREATED)
async def post_company(payload: CompanyCreatePayload, db: DbSession) -> CompanyResponse:
    """POST /api/companies -- create a company."""
    data = CompanyCreateData(
        name=payload.name,
        callback_url=payload.callback_url,
        jwt_alg=payload.jwt_alg.value if payload.jwt_alg else None,
        token_ttl_seconds=payload.token_ttl_seconds,
    )
    try:
        company = await create_company(db, data)
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status.HTTP_409_CONFLICT, "Company name already exists"
        ) from exc
    logger.info("Created company %s", company.id)
    return CompanyResponse.model_validate(company)


@router.get("/{company_id}")
async def get_company(company_id: int, db: DbSession) -> CompanyResponse:
    """GET /api/companies/{id} -- one company."""
    company = await get_company_by_id(db, company_id)
    if company is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_COMPANY_NOT_FOUND)
    return CompanyResponse.model_validate(company)


@router.patch("/{company_id}")
async def patch_company(
    company_id: int, payload: CompanyPatchPayload, db: DbSession
) -> CompanyResponse:
    """PATCH /api/companies/{id} -- update the fields present in the body."""
    changes = payload.changes()
    if not changes:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, "No updatable fields provided"
        )
    try:
        company = await update_company(db, company_id, changes)
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status.HTTP_409_CONFLICT, "Company name already exists"
        ) from exc
    if company is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_COMPANY_NOT_FOUND)
    logger.info("Updated company %s: %s", company_id, sorted(changes))
    return CompanyResponse.model_validate(company)


@router.delete("/{company_id}")
async def remove_company(company_id: int, db: DbSession) -> SuccessResponse:
    """DELETE /api/companies/{id} -- delete a company."""
    if not await delete_company(db, company_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_COMPANY_NOT_FOUND)
    logger.info("Deleted company %s", company_id)
    return SuccessResponse()


@router.get("/{company_id}/users")
async def get_company_users(company_id: int, db: DbSession) -> list[UserResponse]:
    """GET /api/companies/{id}/users -- a company's users by name."""
    users = await list_company_users(db, company_id)
    return [UserResponse.model_validate(u) for u in users]


@router.post("/{company_id}/users", status_code=status.HTTP_201_CREATED)
async def post_company_user(
    company_id: int, payload: UserCreatePayload, db: DbSession
) -> UserResponse:
    """POST /api/companies/{id}/users -- add a user to a company."""
    await _require_company(db, company_id)
    data = UserCreateData(company_id=company_id, **payload.model_dump())
    try:
        user = await create_user(db, data)
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            "A user with this phone already exists in this company",
        ) from exc
    logger.info("Created user %s in company %s", user.id, company_id)
    return UserResponse.model_validate(user)


@router.get("/{company_id}/secret", response_model=None)
async def get_company_secret(
    company_id: int, db: DbSession, settings: Settings
) -> SecretResponse | None:
    """GET /api/companies/{id}/secret -- the signing secret, or null."""
    entity = await get_secret(db, company_id)
    if entity is None:
        return None
    return _secret_to_response(entity, settings.secret_encryption_key)


@router.put("/{company_id}/secret")
async def put_company_secret(
    company_id: int, payload: SecretPayload, db: DbSession, settings: Settings
) -> SecretResponse:
    """PUT /api/companies/{id}/secret -- set or rotate the signing secret.

    Without a ``jwt`` value in the body a random secret is generated.
    """
    await _require_company(db, company_id)
    plain = payload.jwt or generate_secret()
    try:
        entity = await store_secret(
            db, company_id, plain, settings.secret_encryption_key
        )
    except ValueError as exc:
        logger.exception("Cannot encrypt signing secret for company %s", company_id)
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR, MSG_SERVER_ERROR
        ) from exc
    logger.info("Rotated signing secret for company %s", company_id)
    return _secret_to_response(entity, settings.secret_encryption_key)


@router.delete("/{company_id}/secret")
async def remove_company_secret(company_id: int, db: DbSession) -> SuccessResponse:
    """DELETE /api/companies/{id}/secret -- remove the signing secret."""
    if not await delete_secret(db, company_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "JWT not found")
    logger.info("Deleted signing secret for company %s", company_id)
    return SuccessResponse()
