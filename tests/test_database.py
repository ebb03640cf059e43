from conftest import make_settings
from app.db.database import async_database_url, build_engine, engine_options


def test_plain_postgres_url_uses_asyncpg():
    assert async_database_url("postgresql://u:p@db/x") == "postgresql+asyncpg://u:p@db/x"
    assert async_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"


def test_pool_options_come_from_settings():
    config = make_settings(
        DATABASE_URL="postgresql://u:p@db/x",
        DB_POOL_SIZE=3,
        DB_MAX_OVERFLOW=7,
        DB_POOL_RECYCLE_SECONDS=60,
        DB_POOL_PRE_PING="false",
    )
    assert engine_options(config) == {
        "echo": False,
        "pool_pre_ping": False,
        "pool_size": 3,
        "max_overflow": 7,
        "pool_recycle": 60,
    }
    engine = build_engine(config)
    assert engine.url.drivername == "postgresql+asyncpg"
    assert engine.sync_engine.pool.size() == 3


def test_sqlite_engine_skips_pool_sizing(tmp_path):
    config = make_settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
    options = engine_options(config)
    assert "pool_size" not in options
    assert build_engine(config).url.drivername == "sqlite+aiosqlite"
