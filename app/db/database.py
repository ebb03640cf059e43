from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from ..models import Base
from ..core.config import Settings, settings


def async_database_url(url: str) -> str:
    """Plain postgresql:// URLs are switched to the asyncpg driver"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def engine_options(config: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": config.DB_ECHO, "pool_pre_ping": config.DB_POOL_PRE_PING}
    # SQLite (tests, local seeding) has no connection pool to size
    if not config.DATABASE_URL.startswith("sqlite"):
        options.update(
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW,
            pool_recycle=config.DB_POOL_RECYCLE_SECONDS,
        )
    return options


def build_engine(config: Settings = settings) -> AsyncEngine:
    return create_async_engine(async_database_url(config.DATABASE_URL), **engine_options(config))


engine = build_engine()

# One session per document-store call; discovery sources query concurrently
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# checkfirst=True: existing tables are left alone
async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
