"""
Integration fixtures: real PostgreSQL and Redis via testcontainers.

Containers are started once per session; every test gets a freshly wired
`StorageService` over them and a clean set of tables and keys.
"""

from __future__ import annotations

from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer
from testcontainers.redis import RedisContainer

from adtime.core.database.retry_policy import ConnectRetryConfig
from adtime.core.database.settings import DatabaseSettings
from adtime.core.logging import get_logger
from adtime.core.redis.settings import RedisSettings
from adtime.modules.storage import StorageService, initialize_storage, shutdown_storage

logger = get_logger(__name__)


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:16-alpine", driver="asyncpg")
    container.start()
    yield container
    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def redis_container() -> Generator[RedisContainer, None, None]:
    logger.info("Starting Redis testcontainer...")
    container = RedisContainer(image="redis:7-alpine")
    container.start()
    yield container
    logger.info("Stopping Redis testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def database_settings(postgres_container: PostgresContainer) -> DatabaseSettings:
    return DatabaseSettings(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        user=postgres_container.username,
        password=postgres_container.password,
        name=postgres_container.dbname,
        max_open_conns=5,
        max_idle_conns=2,
    )


@pytest.fixture(scope="session")
def redis_settings(redis_container: RedisContainer) -> RedisSettings:
    return RedisSettings(
        host=redis_container.get_container_host_ip(),
        port=int(redis_container.get_exposed_port(6379)),
    )


@pytest_asyncio.fixture
async def pg_storage(
    database_settings: DatabaseSettings,
    redis_settings: RedisSettings,
) -> AsyncGenerator[StorageService, None]:
    storage = await initialize_storage(
        database_settings,
        redis_settings,
        ConnectRetryConfig(max_elapsed_seconds=30),
    )
    await storage.database.create_schema()

    yield storage

    async with storage.database.get_transaction() as session:
        await session.execute(text("TRUNCATE orders, textures, users RESTART IDENTITY"))
    await storage.cache.client.flushdb()
    await shutdown_storage(storage)
