"""
Shared fixtures: a throwaway SQLite store per test and an ASGI client wired to it.
Run with: pytest -v
"""
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("WORKER_SECRET", "test-worker-secret")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

@pytest.fixture
def worker_headers():
    return {"X-Worker-Token": os.environ["WORKER_SECRET"]}


@pytest.fixture
async def engine(tmp_path):
    from authsvc.db import init_db

    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def store(engine):
    from authsvc.core.store import SqlCredentialStore

    return SqlCredentialStore(async_sessionmaker(engine, expire_on_commit=False), timeout=5.0)


@pytest.fixture
def tokens():
    from authsvc.core.tokens import TokenService

    return TokenService("unit-test-secret")


@pytest.fixture
def identity(store, tokens):
    from authsvc.core.identity import IdentityService

    return IdentityService(store, tokens)


@pytest.fixture
async def client(store):
    """AsyncClient against the app with the SQLite store injected."""
    from authsvc.main import app
    from authsvc.api.deps import get_store

    app.dependency_overrides[get_store] = lambda: store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def ada():
    return {
        "full_name": "Ada Lovelace",
        "email": "Ada@X.com",
        "password": "p",
        "user_type": "Client",
    }
