"""Repository for the issued token ledger."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.db.models_token import IssuedTokenEntity


async def insert_issued_token(
    session: AsyncSession, user_id: int, token: str
) -> IssuedTokenEntity:
    """Append a ledger row for a freshly issued token."""
    entity = IssuedTokenEntity(user_id=user_id, token=token)
    session.add(entity)
    await session.flush()
    return entity


async def list_user_tokens(
    session: AsyncSession, user_id: int
) -> list[IssuedTokenEntity]:
    """Return a user's ledger rows, newest first."""
    stmt = (
        select(IssuedTokenEntity)
        .where(IssuedTokenEntity.user_id == user_id)
        .order_by(IssuedTokenEntity.created_at.desc(), IssuedTokenEntity.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_user_tokens(session: AsyncSession, user_id: int) -> int:
    """Count ledger rows for a user."""
    stmt = select(func.count()).where(IssuedTokenEntity.user_id == user_id)
    result = await session.execute(stmt)
    return int(result.scalar_one())


async def delete_issued_token(session: AsyncSession, token_id: int) -> bool:
    """Delete one ledger row. Returns False if no row matched."""
    stmt = delete(IssuedTokenEntity).where(IssuedTokenEntity.id == token_id)
    result = await session.execute(stmt)
    return result.rowcount > 0
