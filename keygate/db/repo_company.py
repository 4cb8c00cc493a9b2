"""Company repository for database CRUD operations."""

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.db.models_company import CompanyEntity


class CompanyCreateData(BaseModel):
    """Parameters for creating a company; unset fields take table defaults."""

    name: str
    callback_url: str | None = None
    jwt_alg: str | None = None
    token_ttl_seconds: int | None = None


async def get_company_by_id(
    session: AsyncSession, company_id: int
) -> CompanyEntity | None:
    """Look up a company by primary key."""
    stmt = select(CompanyEntity).where(CompanyEntity.id == company_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_company_by_name(session: AsyncSession, name: str) -> CompanyEntity | None:
    """Look up a company by its exact name."""
    stmt = select(CompanyEntity).where(CompanyEntity.name == name)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_companies(session: AsyncSession) -> list[CompanyEntity]:
    """Return every company ordered by name."""
    stmt = select(CompanyEntity).order_by(CompanyEntity.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_company(session: AsyncSession, data: CompanyCreateData) -> CompanyEntity:
    """Insert a new company."""
    company = CompanyEntity(name=data.name, callback_url=data.callback_url)
    if data.jwt_alg is not None:
        company.jwt_alg = data.jwt_alg
    if data.token_ttl_seconds is not None:
        company.token_ttl_seconds = data.token_ttl_seconds
    session.add(company)
    await session.flush()
    await session.refresh(company)
    return company


async def update_company(
    session: AsyncSession, company_id: int, changes: dict[str, object]
) -> CompanyEntity | None:
    """Apply already-validated column changes to a company."""
    company = await get_company_by_id(session, company_id)
    if company is None:
        return None
    for column, value in changes.items():
        setattr(company, column, value)
    await session.flush()
    await session.refresh(company)
    return company


async def delete_company(session: AsyncSession, company_id: int) -> bool:
    """Delete a company. Returns False if no row matched."""
    stmt = delete(CompanyEntity).where(CompanyEntity.id == company_id)
    result = await session.execute(stmt)
    return result.rowcount > 0
