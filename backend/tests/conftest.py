"""Shared test fixtures for orderdesk."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderdesk.api.app import create_app
from orderdesk.auth.identity import IdentityVerifier, Principal
from orderdesk.auth.users import UserStore
from orderdesk.config import AppConfig, AuthConfig, OrdersConfig
from orderdesk.models.base import create_all, create_engine, make_session_factory
from orderdesk.orders.lifecycle import OrderLifecycleManager
from orderdesk.orders.store import OrderStore
from tests.factories import TEST_JWT_SECRET, FakeClock, make_admin, make_principal


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """In-memory database with every table created."""
    engine = create_engine("sqlite+aiosqlite://")
    await create_all(engine)
    try:
        yield make_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> OrderStore:
    return OrderStore(session_factory)


@pytest.fixture
def orders_config() -> OrdersConfig:
    return OrdersConfig()


@pytest.fixture
def lifecycle(
    store: OrderStore,
    orders_config: OrdersConfig,
    clock: FakeClock,
) -> OrderLifecycleManager:
    return OrderLifecycleManager(store, orders_config, clock=clock)


@pytest.fixture
def auth_config() -> AuthConfig:
    # Minimum bcrypt cost keeps hashing fast in tests
    return AuthConfig(jwt_secret=TEST_JWT_SECRET, bcrypt_rounds=4)


@pytest.fixture
def verifier(auth_config: AuthConfig) -> IdentityVerifier:
    return IdentityVerifier(auth_config)


@pytest.fixture
def users(
    session_factory: async_sessionmaker[AsyncSession],
    auth_config: AuthConfig,
    clock: FakeClock,
) -> UserStore:
    return UserStore(session_factory, auth_config.bcrypt_rounds, clock=clock)


@pytest.fixture
def user() -> Principal:
    return make_principal("user-1")


@pytest.fixture
def other_user() -> Principal:
    return make_principal("user-2")


@pytest.fixture
def admin() -> Principal:
    return make_admin("admin-1")


@pytest.fixture
def app_config(auth_config: AuthConfig, tmp_path: Path) -> AppConfig:
    return AppConfig(
        auth=auth_config,
        orders=OrdersConfig(),
        db_path=str(tmp_path / "unused.db"),
    )


@pytest.fixture
def app(
    app_config: AppConfig,
    session_factory: async_sessionmaker[AsyncSession],
    clock: FakeClock,
) -> FastAPI:
    return create_app(app_config, session_factory=session_factory, clock=clock)


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
