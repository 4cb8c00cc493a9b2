"""Database operations for user verification keys."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.crypto.keys import generate_secret
from keygate.db.models_keys import VerificationKeyEntity


async def get_verification_key(
    session: AsyncSession, user_id: int
) -> VerificationKeyEntity | None:
    """Return the user's verification key row, if any."""
    stmt = (
        select(VerificationKeyEntity)
        .where(VerificationKeyEntity.user_id == user_id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def rotate_verification_key(
    session: AsyncSession, user_id: int
) -> VerificationKeyEntity:
    """Create the user's key, or replace its value with a fresh random one."""
    entity = await get_verification_key(session, user_id)
    new_value = generate_secret()
    if entity is None:
        entity = VerificationKeyEntity(user_id=user_id, key_value=new_value)
        session.add(entity)
    else:
        entity.key_value = new_value
    await session.flush()
    await session.refresh(entity)
    return entity


async def delete_verification_key(session: AsyncSession, user_id: int) -> bool:
    """Delete the user's key. Returns False if none existed."""
    stmt = delete(VerificationKeyEntity).where(
        VerificationKeyEntity.user_id == user_id
    )
    result = await session.execute(stmt)
    return result.rowcount > 0
