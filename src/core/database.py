from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import DatabaseSettings, settings

# Lazy engine/session creation so tools and tests can swap settings first
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def build_database_url(db: DatabaseSettings | None = None) -> URL:
    """Build the asyncpg URL for the configured database."""
    db = (db or settings.database).resolved()
    return URL.create(
        "postgresql+asyncpg",
        username=db.user or None,
        password=db.password or None,
        host=db.host,
        port=db.port,
        database=db.name,
    )


def _connect_args(db: DatabaseSettings) -> dict[str, Any]:
    # asyncpg takes `ssl` rather than libpq's `sslmode`
    sslmode = db.resolved().sslmode
    if sslmode and sslmode != "disable":
        return {"ssl": sslmode}
    return {}


def get_engine() -> AsyncEngine:
    global _engine, _sessionmaker
    if _engine is None:
        _engine = create_async_engine(
            build_database_url(),
            connect_args=_connect_args(settings.database),
            pool_pre_ping=True,
        )
        _sessionmaker = async_sessionmaker(bind=_engine, class_=AsyncSession, expire_on_commit=False)
    return _engine


def AsyncSessionLocal() -> AsyncSession:
    """Return a new AsyncSession instance.

    The engine and sessionmaker are created on first use. Call sites use
    `async with AsyncSessionLocal() as session:`.
    """
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker()


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


# Base class for our models
class Base(DeclarativeBase):
    pass
