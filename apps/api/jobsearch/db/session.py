import os

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from jobsearch.core import get_settings


def async_database_url(url: str) -> str:
    """Accept postgres:// and postgresql:// URLs and route them through asyncpg."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://") and "asyncpg" not in url:
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


database_url = async_database_url(os.getenv("DATABASE_URL") or get_settings().database_url)

engine = create_async_engine(
    database_url,
    echo=os.getenv("SQL_ECHO", "0") == "1",
    poolclass=NullPool if "render.com" in database_url else None,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)
Base = declarative_base()
