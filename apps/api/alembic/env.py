import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from jobsearch.core import get_settings
from jobsearch.db import models  # noqa: F401
from jobsearch.db.session import Base


def _sync_url(url: str) -> str:
    """psycopg2 URL for migrations; the API itself connects through asyncpg."""
    for prefix in ("postgres://", "postgresql+asyncpg://"):
        if url.startswith(prefix):
            return "postgresql://" + url[len(prefix):]
    return url


config = context.config
config.set_main_option(
    "sqlalchemy.url", _sync_url(os.getenv("DATABASE_URL") or get_settings().database_url)
)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
