"""Alembic environment configuration for async migrations."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import Connection

from keygate.core.settings import DatabaseSettings
from keygate.db.base import BaseEntity
from keygate.db.engine import build_engine
from keygate.db.models_company import CompanyEntity
from keygate.db.models_keys import SigningSecretEntity, VerificationKeyEntity
from keygate.db.models_token import IssuedTokenEntity
from keygate.db.models_user import UserEntity

_registered = (
    CompanyEntity,
    SigningSecretEntity,
    UserEntity,
    VerificationKeyEntity,
    IssuedTokenEntity,
)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseEntity.metadata


def run_migrations_offline() -> None:
    """Run migrations in offline mode (SQL script generation)."""
    url = config.get_main_option("sqlalchemy.url") or DatabaseSettings().async_url
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Execute migrations with the given connection."""
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in online mode with the pooled async engine."""
    engine = build_engine(DatabaseSettings())

    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
