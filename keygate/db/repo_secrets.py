"""Database operations for company signing secrets."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.crypto.keys import encrypt_secret
from keygate.db.models_keys import SigningSecretEntity


async def get_active_secret(
    session: AsyncSession, company_id: int
) -> SigningSecretEntity | None:
    """Return the most recently created active secret for a company."""
    stmt = (
        select(SigningSecretEntity)
        .where(
            SigningSecretEntity.company_id == company_id,
            SigningSecretEntity.is_active.is_(True),
        )
        .order_by(SigningSecretEntity.created_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_secret(
    session: AsyncSession, company_id: int
) -> SigningSecretEntity | None:
    """Return the company's secret row regardless of its active flag."""
    stmt = select(SigningSecretEntity).where(
        SigningSecretEntity.company_id == company_id
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def store_secret(
    session: AsyncSession, company_id: int, plain: str, fernet_key: str
) -> SigningSecretEntity:
    """Create or rotate the company's secret, leaving it active."""
    encrypted = encrypt_secret(plain, fernet_key)
    entity = await get_secret(session, company_id)
    if entity is None:
        entity = SigningSecretEntity(
            company_id=company_id, jwt=encrypted, is_active=True
        )
        session.add(entity)
    else:
        entity.jwt = encrypted
        entity.is_active = True
    await session.flush()
    await session.refresh(entity)
    return entity


async def delete_secret(session: AsyncSession, company_id: int) -> bool:
    """Delete the company's secret. Returns False if none existed."""
    stmt = delete(SigningSecretEntity).where(
        SigningSecretEntity.company_id == company_id
    )
    result = await session.execute(stmt)
    return result.rowcount > 0
