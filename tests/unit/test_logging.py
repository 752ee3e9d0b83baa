"""Unit tests for structured logging and log context propagation."""

import asyncio
import json
import logging

import pytest

from adtime.core.logging import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    clear_log_context,
    get_log_context,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)


def make_record(msg="hello", **extra):
    record = logging.LogRecord(
        name="adtime.modules.orders.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def render(record):
    ContextFilter().filter(record)
    return json.loads(JSONFormatter().format(record))


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


class TestJSONFormatter:
    def test_context_and_extra_fields(self):
        with LogContext(user_id=42, chat_id=42, command="/order", correlation_id="abc123"):
            payload = render(make_record(order_id=7, latency_ms=1.5))

        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["user_id"] == "42"
        assert payload["command"] == "/order"
        assert payload["correlation_id"] == "abc123"
        assert payload["component"] == "adtime"
        assert payload["extra"] == {"order_id": 7, "latency_ms": 1.5}

    def test_explicit_extra_wins_over_context(self):
        with LogContext(user_id=42):
            payload = render(make_record(user_id=99))

        assert payload["user_id"] == 99

    def test_missing_context_is_omitted(self):
        payload = render(make_record())

        assert "user_id" not in payload
        assert "correlation_id" not in payload

    def test_non_json_values_are_stringified(self):
        payload = render(make_record(when=object()))

        assert payload["extra"]["when"].startswith("<object object")


class TestLogContext:
    async def test_async_context_restored_on_exit(self):
        async with LogContext(user_id=1, operation="orders.save"):
            assert get_log_context()["operation"] == "orders.save"

        assert get_log_context() == {}

    async def test_context_is_task_local(self):
        seen = {}

        async def handler(user_id):
            async with LogContext(user_id=user_id):
                await asyncio.sleep(0)
                seen[user_id] = get_log_context()["user_id"]

        await asyncio.gather(handler(1), handler(2))

        assert seen == {1: "1", 2: "2"}

    def test_set_log_context_merges(self):
        set_log_context(user_id=5)
        set_log_context(command="/start", source="test")

        context = get_log_context()

        assert context["user_id"] == "5"
        assert context["command"] == "/start"
        assert context["source"] == "test"


class TestSetup:
    def test_setup_and_shutdown(self):
        root = logging.getLogger()
        level = root.level
        try:
            setup_logging()
            setup_logging()  # idempotent
            assert get_logging_health().initialized is True

            logging.getLogger("adtime.test").warning("queued")
        finally:
            shutdown_logging()
            root.setLevel(level)

        health = get_logging_health()
        assert health.initialized is False
        assert health.records_enqueued >= 1
