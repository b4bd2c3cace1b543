"""
FieldSync Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Tests run against a real SQLite datastore (aiosqlite, one file per
       test under tmp_path) with the production ORM metadata, so RETURNING,
       transactions and rollbacks behave as they do against Postgres.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:         async engine on a fresh SQLite file, tables created
    ├── session_factory:   async_sessionmaker bound to db_engine
    ├── db_session:        one AsyncSession
    ├── seeded_inspector:  inspector INSP01 / hunter2 already stored
    ├── mock_db_session:   AsyncMock session for failure-path tests
    └── test_client:       HTTPX AsyncClient wired to the app, sessions from db_engine
"""

import os

# Must be set BEFORE fieldsync is imported: settings are read once at import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import fieldsync.models  # noqa: F401  (registers every table on Base.metadata)
from fieldsync.database import Base, get_db_session
from fieldsync.models import Inspector


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh on-disk SQLite datastore with the full schema."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'fieldsync.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_inspector(session_factory):
    """Inspector INSP01 with password hunter2."""
    async with session_factory() as session, session.begin():
        session.add(
            Inspector(
                inspector_id="INSP01",
                code="C-01",
                name="Ana",
                surname="Pereira",
                stop_assignment="Terminal Norte",
                secret="hunter2",
                birth_date=date(1990, 5, 17),
            )
        )
    return "INSP01"


@pytest.fixture
def count_rows(session_factory):
    """
    Async helper: number of rows of `model`, optionally filtered.

    Usage:
        assert await count_rows(Report) == 1
        assert await count_rows(ReportObservation, ReportObservation.report_id == 7) == 2
    """
    async def _count(model, *criteria):
        async with session_factory() as session:
            query = select(func.count()).select_from(model)
            for criterion in criteria:
                query = query.where(criterion)
            return (await session.execute(query)).scalar_one()
    return _count


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for paths a real datastore cannot easily produce.

    `begin()` works as an async context manager that does not swallow
    exceptions.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()

    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=None)
    transaction.__aexit__ = AsyncMock(return_value=False)
    session.begin = MagicMock(return_value=transaction)
    return session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app in-process.

    The session dependency is overridden to hand out sessions from the test
    datastore with the same commit/rollback behaviour as production.
    """
    from fieldsync.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
