"""SQLAlchemy model for the companies table."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from keygate.db.base import BaseEntity

TOKEN_TTL_DEFAULT = 1_209_600


class CompanyEntity(BaseEntity):
    """A tenant company with its callback and token signing preferences."""

    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(200), unique=True, nullable=False, index=True
    )
    callback_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    jwt_alg: Mapped[str] = mapped_column(
        String(10), nullable=False, default="HS256", server_default="HS256"
    )
    token_ttl_seconds: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=TOKEN_TTL_DEFAULT,
        server_default=str(TOKEN_TTL_DEFAULT),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
