from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from pos_server.core.config import get_settings

Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _configure_sqlite(engine: AsyncEngine, busy_timeout_seconds: float) -> None:
    """Make SQLite behave like a server database for concurrent writers.

    pysqlite/aiosqlite defer BEGIN until the first write, which lets two
    connections both read and then deadlock upgrading to a write lock. The
    driver's own BEGIN is disabled and every transaction starts with
    BEGIN IMMEDIATE instead, so writers queue on the busy timeout.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_seconds * 1000)}")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def configure_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """(Re)create the engine and session factory, e.g. for a test database."""
    global _engine, _session_factory
    settings = get_settings()
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        engine = create_async_engine(url, future=True, echo=settings.database_echo)
        _configure_sqlite(engine, settings.sqlite_busy_timeout_seconds)
    else:
        engine = create_async_engine(
            url,
            future=True,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )

    _engine = engine
    _session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        configure_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        configure_engine()
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        yield session


async def init_db() -> None:
    # registers every table on Base.metadata
    from pos_server.db.models import customers, line_items, products, transactions, users  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
