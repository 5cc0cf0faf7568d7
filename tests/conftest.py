"""
Nexus Forum Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── mock_store: AsyncMock standing in for a ForumStore
    ├── memory_store: Seeded MemoryForumStore
    ├── sql_store: Seeded SQLForumStore on an in-memory SQLite database
    ├── store: memory_store and sql_store, parametrized
    └── test_client: HTTPX AsyncClient against the app, once per store backend
"""

import os
import tempfile

# Override settings for testing BEFORE any nexus_forum imports
# settings and the engine are built at import time
_TEST_DIR = tempfile.mkdtemp(prefix="nexus_forum_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORE_BACKEND"] = "sql"
os.environ["JWT_SECRET"] = "test-secret-for-the-nexus-forum-suite"
os.environ["EXPOSE_ERROR_DETAILS"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from werkzeug.security import generate_password_hash

from nexus_forum.database import Base, create_schema, enable_sqlite_foreign_keys, engine
from nexus_forum.services.memory_store import MemoryForumStore
from nexus_forum.services.sql_store import SQLForumStore
from nexus_forum.services.store_base import ForumStore

ADMIN_PASSWORD = "admin123"


@pytest.fixture(scope="session")
def admin_password_hash():
    """Hashing is slow on purpose; compute the seed hash once."""
    return generate_password_hash(ADMIN_PASSWORD)


# ══════════════════════════════════════════════════════════════════════════
# Mocks
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    A MagicMock that simulates AsyncSession behavior.
    Why:     Error translation and race handling are easier to drive with
             scripted results than with a real database.

    Usage:
        async def test_lookup(mock_db_session):
            mock_db_session.execute.side_effect = OperationalError(...)
            await SQLForumStore(mock_db_session).list_categories()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_store():
    """A ForumStore whose every method is an AsyncMock."""
    return AsyncMock(spec=ForumStore)


# ══════════════════════════════════════════════════════════════════════════
# Real Stores
# ══════════════════════════════════════════════════════════════════════════

async def _seeded_memory_store(password_hash: str) -> MemoryForumStore:
    store = MemoryForumStore()
    await store.initialize(password_hash)
    return store


@asynccontextmanager
async def _seeded_sql_store(password_hash: str) -> AsyncGenerator[SQLForumStore, None]:
    """
    SQLForumStore over a private in-memory SQLite database.

    StaticPool keeps the single connection alive, otherwise each checkout
    would see a brand-new empty database.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    await create_schema(test_engine)

    factory = async_sessionmaker(test_engine, expire_on_commit=False)
    try:
        async with factory() as session:
            store = SQLForumStore(session)
            await store.initialize(password_hash)
            yield store
    finally:
        await test_engine.dispose()


@pytest_asyncio.fixture
async def memory_store(admin_password_hash):
    return await _seeded_memory_store(admin_password_hash)


@pytest_asyncio.fixture
async def sql_store(admin_password_hash):
    async with _seeded_sql_store(admin_password_hash) as store:
        yield store


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, admin_password_hash):
    """Runs a test once per ForumStore implementation."""
    if request.param == "memory":
        yield await _seeded_memory_store(admin_password_hash)
        return
    async with _seeded_sql_store(admin_password_hash) as sql:
        yield sql


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture(params=["memory", "sql"])
async def test_client(request):
    """
    Provides an async HTTP test client for endpoint testing.

    memory: the app is built around a fresh MemoryForumStore
    sql:    the app opens one session per request on the SQLite file
            database from DATABASE_URL; tables are dropped afterwards

    ASGITransport does not run the lifespan, so the store is seeded here.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from nexus_forum.main import create_app, initialize_store

    store = MemoryForumStore() if request.param == "memory" else None
    app = create_app(store=store)
    await initialize_store(store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    if store is None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()
