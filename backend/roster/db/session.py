"""SQLAlchemy async engine/session bootstrap.

Exposes the declarative ``Base`` shared by the ORM tables and a factory that
builds an engine plus session maker from a database URL. The caller owns the
engine and must dispose it.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def create_session_factory(
    database_url: str,
    echo: bool = False,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(database_url, echo=echo, pool_pre_ping=True)
    session_maker = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    return engine, session_maker


async def ensure_tables(engine: AsyncEngine) -> None:
    """Create missing tables. Idempotent; existing tables are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
