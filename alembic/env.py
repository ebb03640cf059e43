import os
import sys
import asyncio
import logging
import urllib.parse as _urlparse
from dotenv import load_dotenv
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

# ----------------------------------------------------
# 1. Configuration and model imports
# ----------------------------------------------------

# Load .env so alembic can run standalone
load_dotenv()

# Add project root to sys.path so that app modules can be imported
sys.path.append(os.getcwd())

from app.models import Base
from app.core.config import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

# ----------------------------------------------------
# A. Resolve the database URL (alembic.ini wins, then settings)
# ----------------------------------------------------
db_url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL

# Offline mode renders SQL only; keep a sync-style URL there
if db_url.startswith("postgresql+asyncpg://"):
    sync_db_url = db_url.replace("postgresql+asyncpg://", "postgresql://", 1)
else:
    sync_db_url = db_url
config.set_main_option("sqlalchemy.url", sync_db_url.strip())

target_metadata = Base.metadata


# ----------------------------------------------------
# 2. Offline migration
# ----------------------------------------------------
def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


# ----------------------------------------------------
# 3. Online (async) migration
# ----------------------------------------------------
def do_run_migrations(connection):
    """Run Alembic migrations using a synchronous connection."""
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


def _async_url_and_args(database_url: str):
    """
    asyncpg.connect does not accept 'sslmode'. Strip it from the URL and
    pass ssl=True through connect_args instead.
    """
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    connect_args = {}
    if "sslmode=" in database_url:
        parsed = _urlparse.urlparse(database_url)
        qs = _urlparse.parse_qs(parsed.query, keep_blank_values=True)
        if "sslmode" in qs:
            qs.pop("sslmode", None)
            new_query = _urlparse.urlencode(qs, doseq=True)
            database_url = _urlparse.urlunparse(
                (parsed.scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment)
            )
            connect_args["ssl"] = True
    return database_url, connect_args


async def run_migrations_online_async():
    async_db_url, connect_args = _async_url_and_args(config.get_main_option("sqlalchemy.url"))
    logger.info(f"Running migrations against {async_db_url.split('@')[-1]}")

    create_kwargs = {"poolclass": pool.NullPool}
    if connect_args:
        create_kwargs["connect_args"] = connect_args

    connectable = create_async_engine(async_db_url, **create_kwargs)

    async with connectable.begin() as conn:
        await conn.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' (async) mode."""
    asyncio.run(run_migrations_online_async())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
