"""
Unit tests for connection establishment.

The retry policy runs against a fake clock whose sleep advances time, so
backoff schedules are checked without waiting.
"""

import asyncio
import time

import pytest
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from adtime.core.database.bootstrap import (
    connect_database,
    initialize_database_subsystem,
    install_idle_timeout,
)
from adtime.core.database.retry_policy import ConnectRetryConfig, ConnectRetryPolicy
from adtime.core.database.service import DatabaseService
from adtime.core.database.settings import DatabaseSettings
from adtime.core.exceptions import DatabaseConnectionError
from tests.fakes import FakeClock


@pytest.fixture
def fake_clock():
    return FakeClock(start=0.0)


def flaky(failures: int, exc_type=ConnectionRefusedError):
    """Async operation that fails `failures` times, then returns "ok"."""
    state = {"calls": 0}

    async def operation():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise exc_type("connection refused")
        return "ok"

    operation.state = state
    return operation


# ============================================================================
# BACKOFF SCHEDULE
# ============================================================================


class TestComputeDelay:
    def test_default_schedule(self):
        policy = ConnectRetryPolicy(ConnectRetryConfig())

        delays = [policy.compute_delay(attempt) for attempt in range(1, 5)]

        assert delays == pytest.approx([0.5, 0.75, 1.125, 1.6875])

    def test_capped_at_max_interval(self):
        policy = ConnectRetryPolicy(ConnectRetryConfig(max_interval_ms=2_000))

        assert policy.compute_delay(30) == pytest.approx(2.0)

    def test_jitter_stays_within_bound(self):
        policy = ConnectRetryPolicy(ConnectRetryConfig(jitter_ms=100))

        for _ in range(50):
            assert 0.5 <= policy.compute_delay(1) <= 0.6


class TestRetryPolicy:
    async def test_succeeds_after_failures_with_non_decreasing_delays(self, fake_clock):
        policy = ConnectRetryPolicy(
            ConnectRetryConfig(), sleep=fake_clock.sleep, clock=fake_clock
        )
        operation = flaky(4)

        result = await policy.execute(operation, operation_name="test.connect")

        assert result == "ok"
        assert operation.state["calls"] == 5
        assert len(fake_clock.sleeps) == 4
        assert fake_clock.sleeps == sorted(fake_clock.sleeps)

    async def test_budget_exhaustion_is_fatal(self, fake_clock):
        config = ConnectRetryConfig(max_elapsed_seconds=10.0)
        policy = ConnectRetryPolicy(config, sleep=fake_clock.sleep, clock=fake_clock)

        with pytest.raises(DatabaseConnectionError) as exc_info:
            await policy.execute(flaky(10_000), operation_name="test.connect")

        error = exc_info.value
        assert error.is_retryable is False
        assert isinstance(error.__cause__, ConnectionRefusedError)
        assert error.elapsed_seconds <= 10.0
        assert fake_clock.now <= 10.0
        assert error.attempts == len(fake_clock.sleeps) + 1

    async def test_non_retriable_error_propagates_immediately(self, fake_clock):
        policy = ConnectRetryPolicy(
            ConnectRetryConfig(), sleep=fake_clock.sleep, clock=fake_clock
        )

        with pytest.raises(KeyError):
            await policy.execute(flaky(1, KeyError), operation_name="test.connect")

        assert fake_clock.sleeps == []


# ============================================================================
# CONNECT DATABASE
# ============================================================================


def sqlite_settings(**overrides) -> DatabaseSettings:
    fields = {
        "host": "",
        "port": 0,
        "user": "",
        "password": "",
        "name": ":memory:",
        "conn_max_idle_time_seconds": 0,
    }
    fields.update(overrides)
    return DatabaseSettings(**fields)


class TestConnectDatabase:
    async def test_retries_probe_and_disposes_failed_engines(self, mocker, fake_clock):
        engines = []

        def engine_factory(url, **kwargs):
            engine = mocker.MagicMock()
            engine.dispose = mocker.AsyncMock()
            engines.append(engine)
            return engine

        failures = {"left": 2}

        async def probe(engine):
            if failures["left"]:
                failures["left"] -= 1
                raise ConnectionRefusedError("db starting")

        engine = await connect_database(
            sqlite_settings(),
            ConnectRetryConfig(),
            engine_factory=engine_factory,
            probe=probe,
            sleep=fake_clock.sleep,
            clock=fake_clock,
        )

        assert len(engines) == 3
        assert engine is engines[-1]
        engines[0].dispose.assert_awaited_once()
        engines[1].dispose.assert_awaited_once()
        engines[2].dispose.assert_not_awaited()
        assert fake_clock.sleeps == pytest.approx([0.5, 0.75])

    async def test_engine_receives_pool_policy(self, mocker, fake_clock):
        factory = mocker.MagicMock()
        factory.return_value.dispose = mocker.AsyncMock()
        settings = sqlite_settings(
            max_open_conns=20, max_idle_conns=5, conn_max_lifetime_seconds=600
        )

        async def probe(engine):
            return None

        await connect_database(settings, engine_factory=factory, probe=probe)

        _, kwargs = factory.call_args
        assert kwargs["pool_size"] == 5
        assert kwargs["max_overflow"] == 15
        assert kwargs["pool_recycle"] == 600

    async def test_permanent_failure_raises_fatal_error(self, mocker, fake_clock):
        def engine_factory(url, **kwargs):
            engine = mocker.MagicMock()
            engine.dispose = mocker.AsyncMock()
            return engine

        async def probe(engine):
            raise ConnectionRefusedError("no route")

        with pytest.raises(DatabaseConnectionError):
            await connect_database(
                sqlite_settings(),
                ConnectRetryConfig(max_elapsed_seconds=5.0),
                engine_factory=engine_factory,
                probe=probe,
                sleep=fake_clock.sleep,
                clock=fake_clock,
            )

        assert fake_clock.now <= 5.0

    async def test_hung_probe_is_bounded_by_budget(self, mocker):
        mocker.patch("adtime.core.database.bootstrap.MIN_PROBE_TIMEOUT_SECONDS", 0.05)
        engine = mocker.MagicMock()
        engine.dispose = mocker.AsyncMock()

        async def probe(engine):
            await asyncio.sleep(60)

        started = time.monotonic()
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await connect_database(
                sqlite_settings(),
                ConnectRetryConfig(max_elapsed_seconds=0.2),
                engine_factory=lambda url, **kwargs: engine,
                probe=probe,
            )

        assert time.monotonic() - started < 5
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
        engine.dispose.assert_awaited_once()

    async def test_initialize_subsystem_returns_service(self, fake_clock):
        service = await initialize_database_subsystem(
            sqlite_settings(drivername="sqlite+aiosqlite"),
            ConnectRetryConfig(),
            engine_factory=lambda url, **kwargs: create_async_engine(url),
        )
        try:
            assert isinstance(service, DatabaseService)
            assert await service.health_check() is True
        finally:
            await service.shutdown()


# ============================================================================
# IDLE TIMEOUT HOOK
# ============================================================================


class TestIdleTimeout:
    @pytest.fixture
    async def file_engine(self, tmp_path):
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'idle.db'}",
            poolclass=AsyncAdaptedQueuePool,
        )
        yield engine
        await engine.dispose()

    @staticmethod
    def count_connects(engine):
        connects = []
        event.listen(engine.sync_engine, "connect", lambda *args: connects.append(1))
        return connects

    @staticmethod
    async def use(engine):
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def test_fresh_connection_is_reused(self, file_engine, fake_clock):
        install_idle_timeout(file_engine, 60, clock=fake_clock)
        connects = self.count_connects(file_engine)

        await self.use(file_engine)
        fake_clock.advance(30)
        await self.use(file_engine)

        assert len(connects) == 1

    async def test_idle_connection_is_replaced(self, file_engine, fake_clock):
        install_idle_timeout(file_engine, 60, clock=fake_clock)
        connects = self.count_connects(file_engine)

        await self.use(file_engine)
        fake_clock.advance(61)
        await self.use(file_engine)

        assert len(connects) == 2
