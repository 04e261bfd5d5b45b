"""
Async engine + session factory for the credential store.

Production runs on asyncpg; tests point the factory at aiosqlite.
"""
import structlog
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from authsvc.config import settings

log = structlog.get_logger()


class Base(DeclarativeBase):
    pass


# ── URL helpers ────────────────────────────────────────────────────────────

def _raw_url() -> str:
    url = settings.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    # Normalise postgres:// → postgresql://
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url


def _async_url() -> str:
    url = _raw_url()
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


# ── Engine ─────────────────────────────────────────────────────────────────

_async_engine  = None
_async_factory = None


def get_async_engine() -> AsyncEngine:
    global _async_engine
    if _async_engine is None:
        url = _async_url()
        kwargs = {}
        if not url.startswith("sqlite"):
            kwargs = {"pool_size": settings.DB_POOL_SIZE, "max_overflow": settings.DB_MAX_OVERFLOW}
        _async_engine = create_async_engine(url, echo=False, **kwargs)
    return _async_engine


def get_session_factory() -> async_sessionmaker:
    global _async_factory
    if _async_factory is None:
        _async_factory = async_sessionmaker(get_async_engine(), class_=AsyncSession, expire_on_commit=False)
    return _async_factory


# ── Startup ────────────────────────────────────────────────────────────────

async def init_db(engine: AsyncEngine = None):
    """Create tables for all models. Safe to run on every boot."""
    engine = engine or get_async_engine()

    from authsvc.models import user, credential  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("tables_created")


async def dispose_db():
    global _async_engine, _async_factory
    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_factory = None
