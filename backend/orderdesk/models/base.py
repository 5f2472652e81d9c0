"""SQLAlchemy base, async engine setup, DecimalText type, and SQLite pragmas."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import String, TypeDecorator

DEFAULT_BUSY_TIMEOUT_MS = 5000


class DecimalText(TypeDecorator[Decimal]):
    """Store Python Decimal as TEXT in SQLite for exact precision.

    All monetary values (unit prices, order totals) must use this type
    to avoid floating-point errors.
    """

    impl = String
    cache_ok = True

    def process_bind_param(
        self,
        value: Decimal | None,
        dialect: Any,
    ) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(
        self,
        value: str | None,
        dialect: Any,
    ) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def set_sqlite_pragmas(
    dbapi_connection: Any,
    connection_record: Any,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> None:
    """Set SQLite pragmas on every new connection.

    Must be registered via event.listen(engine, "connect", ...) or
    called manually for each connection. SQLite pragmas are per-connection,
    not per-database, so they must be set every time.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(
    url: str,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> AsyncEngine:
    """Create an async engine with the pragma listener registered."""
    engine = create_async_engine(url, echo=False)

    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        set_sqlite_pragmas(dbapi_connection, connection_record, busy_timeout_ms)

    event.listen(engine.sync_engine, "connect", _on_connect)
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every table (development / tests; production uses Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
