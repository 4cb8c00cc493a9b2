"""Admin endpoints for users, their verification keys and issued tokens."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.api.deps import require_admin_token
from keygate.api.schemas import (
    IssuedTokenResponse,
    KeyResponse,
    SuccessResponse,
    UserWithCompanyResponse,
)
from keygate.db.engine import get_session
from keygate.db.repo_keys import (
    delete_verification_key,
    get_verification_key,
    rotate_verification_key,
)
from keygate.db.repo_tokens import delete_issued_token, list_user_tokens
from keygate.db.repo_user import delete_user, get_user_by_id, list_users_with_company

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["users"],
    dependencies=[Depends(require_admin_token)],
)

DbSession = Annotated[AsyncSession, Depends(get_session)]

MSG_USER_NOT_FOUND = "User not found"


@router.get("/users")
async def get_users(db: DbSession) -> list[UserWithCompanyResponse]:
    """GET /api/users -- every user with its company name."""
    rows = await list_users_with_company(db)
    return [
        UserWithCompanyResponse(
            id=user.id,
            company_id=user.company_id,
            company_name=company_name,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            role=user.role,
            created_at=user.created_at,
        )
        for user, company_name in rows
    ]


@router.delete("/users/{user_id}")
async def remove_user(user_id: int, db: DbSession) -> SuccessResponse:
    """DELETE /api/users/{id} -- delete a user."""
    if not await delete_user(db, user_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_USER_NOT_FOUND)
    logger.info("Deleted user %s", user_id)
    return SuccessResponse()


@router.get("/users/{user_id}/key", response_model=None)
async def get_user_key(user_id: int, db: DbSession) -> KeyResponse | None:
    """GET /api/users/{id}/key -- the verification key, or null."""
    entity = await get_verification_key(db, user_id)
    if entity is None:
        return None
    return KeyResponse.model_validate(entity)


@router.put("/users/{user_id}/key")
async def put_user_key(user_id: int, db: DbSession) -> KeyResponse:
    """PUT /api/users/{id}/key -- create or rotate the verification key."""
    if await get_user_by_id(db, user_id) is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, MSG_USER_NOT_FOUND)
    entity = await rotate_verification_key(db, user_id)
    logger.info("Rotated verification key for user %s", user_id)
    return KeyResponse.model_validate(entity)


@router.delete("/users/{user_id}/key")
async def remove_user_key(user_id: int, db: DbSession) -> SuccessResponse:
    """DELETE /api/users/{id}/key -- remove the verification key."""
    if not await delete_verification_key(db, user_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Key not found")
    logger.info("Deleted verification key for user %s", user_id)
    return SuccessResponse()


@router.get("/users/{user_id}/tokens")
async def get_user_tokens(user_id: int, db: DbSession) -> list[IssuedTokenResponse]:
    """GET /api/users/{id}/tokens -- issued tokens, newest first."""
    tokens = await list_user_tokens(db, user_id)
    return [IssuedTokenResponse.model_validate(t) for t in tokens]


@router.delete("/tokens/{token_id}")
async def remove_token(token_id: int, db: DbSession) -> SuccessResponse:
    """DELETE /api/tokens/{id} -- drop one ledger row."""
    if not await delete_issued_token(db, token_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Token not found")
    return SuccessResponse()
