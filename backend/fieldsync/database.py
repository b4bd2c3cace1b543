"""
FieldSync Backend: Database Session Management
===============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   The engine (and its connection pool) is built once from `settings` on
       first use; each request gets its own session that commits on success,
       rolls back on error, and is always closed.
Who:   Route handlers via FastAPI's dependency injection; the health probe.
When:  Engine on first request (or explicit init_engine()); sessions per request.

Connection Pooling:
    Postgres (asyncpg): QueuePool sized by db_pool_size / db_max_overflow,
    pre-ping on checkout, connections recycled hourly.
    SQLite (aiosqlite): SQLAlchemy's dialect defaults; pool sizing is not
    applied because the SQLite pools do not accept it.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from fieldsync.config import Settings, settings

engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


class Base(DeclarativeBase):
    """Base class for all FieldSync ORM models (single shared metadata)."""
    pass


def _engine_options(config: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": config.log_level == "DEBUG"}
    if config.is_postgres:
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
        if config.db_ssl_mode:
            options["connect_args"] = {"ssl": config.db_ssl_mode}
    return options


def init_engine(config: Settings = settings) -> AsyncEngine:
    """
    Build the process-wide engine and session factory.

    Idempotent: a second call returns the engine already built.

    Raises:
        ValueError: DATABASE_URL is missing.
    """
    global engine, async_session_factory
    if engine is not None:
        return engine

    config.validate_required_for_production()
    engine = create_async_engine(config.database_url, **_engine_options(config))
    # expire_on_commit=False: ORM objects stay readable after commit
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if async_session_factory is None:
        init_engine()
    return async_session_factory


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits whatever transaction is still open
        4. On error: rolls back (discards partial writes) and re-raises
        5. Always: closes the session, returning its connection to the pool

    Services that need an explicit unit of work (report ingestion,
    registration) open it themselves with `async with session.begin()`;
    the commit here is then a no-op.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def describe_db_error(exc: BaseException) -> str:
    """
    Driver-level message of a datastore failure.

    SQLAlchemy's own str() embeds the statement and its bound parameters
    (which may include an inspector's secret); only the DBAPI error text is
    safe to hand back to clients.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc) or type(exc).__name__


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the app lifespan on shutdown."""
    global engine, async_session_factory
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session_factory = None
