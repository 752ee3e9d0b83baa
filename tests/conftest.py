"""
Pytest Configuration and Fixtures for the Adtime storage tests
==============================================================

Purpose
-------
Shared fixtures for the unit suite: an in-memory SQLite database behind a
real `DatabaseService`, an in-memory cache with a controllable clock, the
wired `StorageService`, and factories for test data.

Architecture Notes
------------------
- Unit tests run the real SQLAlchemy code against aiosqlite (StaticPool, so
  every session sees the same in-memory database)
- Cache behaviour comes from `tests.fakes.InMemoryCache`
- Integration fixtures (testcontainers) live in tests/integration/conftest.py
- Database fixtures give every test a clean schema
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, List

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from adtime.core.database.service import DatabaseService
from adtime.database.models import TextureRecord
from adtime.domain.models.order import OrderDraft
from adtime.modules.storage import StorageService
from tests.fakes import FakeClock, InMemoryCache

# Fixed "now" used by time-sensitive tests: mid-day UTC
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ.setdefault("ENVIRONMENT", "testing")
    os.environ.setdefault("LOG_LEVEL", "DEBUG")


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> DatabaseService:
    """DatabaseService with every table created."""
    service = DatabaseService(engine)
    await service.create_schema()
    return service


@pytest.fixture
def query_log(engine: AsyncEngine) -> List[str]:
    """
    Statements executed against the test engine, in order.

    Usage:
        before = len(query_log)
        await storage.get_texture_by_id("oak")
        assert len(query_log) == before
    """
    statements: List[str] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine.sync_engine, "before_cursor_execute", record)


# ============================================================================
# CACHE FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(clock)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def storage(db: DatabaseService, cache: InMemoryCache) -> StorageService:
    return StorageService(db, cache, now=lambda: NOW)


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_draft() -> Callable[..., OrderDraft]:
    """
    Build an `OrderDraft` with realistic defaults.

    Usage:
        draft = make_draft(user_id=7, price=1500.0)
    """

    def factory(**overrides) -> OrderDraft:
        fields = {
            "user_id": 1001,
            "width_cm": 40,
            "height_cm": 30,
            "texture_id": "oak",
            "texture_name": "Oak",
            "price": 1200.0,
            "leather_cost": 300.0,
            "process_cost": 200.0,
            "total_cost": 500.0,
            "commission": 60.0,
            "tax": 72.0,
            "net_revenue": 1068.0,
            "profit": 568.0,
            "contact": "@customer",
        }
        fields.update(overrides)
        return OrderDraft(**fields)

    return factory


@pytest.fixture
def add_texture(db: DatabaseService) -> Callable:
    """Insert a catalog row directly, bypassing the read path."""

    async def factory(
        texture_id: str = "oak",
        name: str = "Oak",
        price_per_dm2: float = 12.5,
        image_url: str = "https://img.example/oak.png",
        in_stock: bool = True,
    ) -> None:
        async with db.get_transaction() as session:
            session.add(
                TextureRecord(
                    id=texture_id,
                    name=name,
                    price_per_dm2=price_per_dm2,
                    image_url=image_url,
                    in_stock=in_stock,
                )
            )

    return factory
