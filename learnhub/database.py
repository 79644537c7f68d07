"""Storage handle for the whole process.

The engine and session factory are created once by `init_engine()` during
application startup and released by `dispose_engine()` at shutdown. Nothing
here connects lazily on first use: `verify_connection()` is called right after
init so a bad DATABASE_URL fails the boot instead of the first request.
"""
import logging
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .settings.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine: Optional[AsyncEngine] = None
async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def normalize_url(raw_url: str) -> str:
    if raw_url.startswith("postgresql+psycopg"):
        # if someone provided a sync URL by mistake, upgrade it to async
        _, rest = raw_url.split("://", 1)
        return f"postgresql+asyncpg://{rest}"
    return raw_url or settings.DATABASE_URL


def init_engine(url: Optional[str] = None) -> AsyncEngine:
    global engine, async_session_maker
    if engine is not None:
        raise RuntimeError("Storage engine already initialised; call dispose_engine() first")
    db_url = normalize_url(url or settings.DATABASE_URL)
    kwargs = {"echo": False, "future": True}
    if db_url.startswith("sqlite") and (":memory:" in db_url or db_url.endswith("://")):
        # one shared connection, otherwise every session sees its own empty db
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    engine = create_async_engine(db_url, **kwargs)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    logger.info("Storage engine created for dialect %s", engine.dialect.name)
    return engine


async def verify_connection() -> None:
    if engine is None:
        raise RuntimeError("Storage engine not initialised")
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_all() -> None:
    from . import models  # noqa: F401  registers every table on Base.metadata

    if engine is None:
        raise RuntimeError("Storage engine not initialised")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global engine, async_session_maker
    if engine is None:
        return
    await engine.dispose()
    engine = None
    async_session_maker = None
    logger.info("Storage engine disposed")


def session_factory() -> async_sessionmaker[AsyncSession]:
    if async_session_maker is None:
        raise RuntimeError("Storage engine not initialised")
    return async_session_maker


async def get_db() -> AsyncIterator[AsyncSession]:
    async with session_factory()() as session:
        yield session
