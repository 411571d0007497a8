from collections.abc import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from habitkernel.config import settings
from habitkernel.kernel.connector import SqlRepository
from habitkernel.kernel.flatfile import FlatFileRepository
from habitkernel.kernel.repository import Repository

_raw_url = settings.database_url

if _raw_url.startswith("postgres://"):
    _raw_url = _raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
elif _raw_url.startswith("postgresql://"):
    _raw_url = _raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)

engine = create_async_engine(_raw_url, pool_pre_ping=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def get_repository(session: AsyncSession = Depends(get_session)) -> AsyncIterator[Repository]:
    """FastAPI dependency: the configured storage backend.

    The session connects lazily, so the flat-file backend never touches the database.
    """
    if settings.storage_backend == "sql":
        yield SqlRepository(session)
    else:
        yield FlatFileRepository(settings.config_dir)
