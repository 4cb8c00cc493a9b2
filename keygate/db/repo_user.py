"""User repository for database CRUD operations."""

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.db.models_company import CompanyEntity
from keygate.db.models_user import UserEntity


class UserCreateData(BaseModel):
    """Parameters for creating a user inside a company."""

    company_id: int
    first_name: str
    last_name: str
    phone_number: str
    role: str


async def get_user_by_id(session: AsyncSession, user_id: int) -> UserEntity | None:
    """Look up a user by primary key."""
    stmt = select(UserEntity).where(UserEntity.id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_user_by_phone(
    session: AsyncSession, company_id: int, phone: str
) -> UserEntity | None:
    """Look up a company's user by phone number."""
    stmt = (
        select(UserEntity)
        .where(
            UserEntity.company_id == company_id,
            UserEntity.phone_number == phone,
        )
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_user_by_name(
    session: AsyncSession, company_id: int, first_name: str, last_name: str
) -> UserEntity | None:
    """Look up a company's user by exact first and last name."""
    stmt = (
        select(UserEntity)
        .where(
            UserEntity.company_id == company_id,
            UserEntity.first_name == first_name,
            UserEntity.last_name == last_name,
        )
        .order_by(UserEntity.id)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_company_users(
    session: AsyncSession, company_id: int
) -> list[UserEntity]:
    """Return a company's users ordered by last then first name."""
    stmt = (
        select(UserEntity)
        .where(UserEntity.company_id == company_id)
        .order_by(UserEntity.last_name, UserEntity.first_name)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_users_with_company(
    session: AsyncSession,
) -> list[tuple[UserEntity, str]]:
    """Return every user paired with its company name."""
    stmt = (
        select(UserEntity, CompanyEntity.name)
        .join(CompanyEntity, CompanyEntity.id == UserEntity.company_id)
        .order_by(CompanyEntity.name, UserEntity.last_name, UserEntity.first_name)
    )
    result = await session.execute(stmt)
    return [(row[0], row[1]) for row in result.all()]


async def create_user(session: AsyncSession, data: UserCreateData) -> UserEntity:
    """Insert a new user."""
    user = UserEntity(
        company_id=data.company_id,
        first_name=data.first_name,
        last_name=data.last_name,
        phone_number=data.phone_number,
        role=data.role,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def delete_user(session: AsyncSession, user_id: int) -> bool:
    """Delete a user. Returns False if no row matched."""
    stmt = delete(UserEntity).where(UserEntity.id == user_id)
    result = await session.execute(stmt)
    return result.rowcount > 0
