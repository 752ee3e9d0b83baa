"""
Unit tests for storage start-up and shutdown wiring.

Redis is mocked; the database is SQLite through the real bootstrap path.
"""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from adtime.core.database.retry_policy import ConnectRetryConfig
from adtime.core.database.settings import DatabaseSettings
from adtime.core.exceptions import RedisConnectionError
from adtime.core.redis.service import RedisService
from adtime.core.redis.settings import RedisSettings
from adtime.modules.storage import StorageService, initialize_storage, shutdown_storage


@pytest.fixture
def sqlite_settings():
    return DatabaseSettings(
        host="",
        port=0,
        user="",
        password="",
        name=":memory:",
        conn_max_idle_time_seconds=0,
        drivername="sqlite+aiosqlite",
    )


def sqlite_engine(url, **kwargs):
    # StaticPool rejects pool sizing arguments
    return create_async_engine(url)


class TestInitializeStorage:
    async def test_wires_database_and_redis(self, mocker, sqlite_settings):
        redis = mocker.MagicMock(spec=RedisService)
        connect = mocker.patch.object(
            RedisService, "connect", mocker.AsyncMock(return_value=redis)
        )

        storage = await initialize_storage(
            sqlite_settings,
            RedisSettings(host="cache"),
            ConnectRetryConfig(),
            engine_factory=sqlite_engine,
        )
        try:
            assert isinstance(storage, StorageService)
            assert storage.cache is redis
            assert storage.database.dialect_name == "sqlite"
            connect.assert_awaited_once()
        finally:
            await shutdown_storage(storage)

        redis.shutdown.assert_awaited_once()

    async def test_redis_failure_disposes_engine(self, mocker, sqlite_settings):
        mocker.patch.object(
            RedisService,
            "connect",
            mocker.AsyncMock(side_effect=RedisConnectionError("PING", OSError("refused"))),
        )
        shutdown = mocker.patch(
            "adtime.modules.storage.service.shutdown_database_subsystem",
            mocker.AsyncMock(),
        )

        with pytest.raises(RedisConnectionError):
            await initialize_storage(
                sqlite_settings,
                RedisSettings(),
                ConnectRetryConfig(),
                engine_factory=sqlite_engine,
            )

        shutdown.assert_awaited_once()


class TestShutdownStorage:
    async def test_redis_close_error_does_not_block_engine_dispose(self, mocker, db):
        redis = mocker.MagicMock(spec=RedisService)
        redis.shutdown.side_effect = RuntimeError("already closed")
        dispose = mocker.patch.object(db, "shutdown", mocker.AsyncMock())

        await shutdown_storage(StorageService(db, redis))

        dispose.assert_awaited_once()
