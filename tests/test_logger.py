"""Tests for structured logging setup with the debug hook."""

import asyncio
import io
import json
import logging
import sys
import threading

import pytest
import structlog
from structlog.testing import LogCapture

from debug_hook import HookOptions, create_hook
from debug_hook.logger import (
    get_logger,
    reset_logger,
    resolve_log_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    """Reset logging state between tests."""
    monkeypatch.delenv("APP_VERSION", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


def read_records(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


def log_through_wrapper(logger, message: str) -> None:
    """Application-level logging helper adding one frame."""
    logger.debug(message)


def test_structlog_processor_reports_call_site():
    """Test the hook inside a plain structlog processor chain."""
    capture = LogCapture()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            create_hook(options=HookOptions(levels=["debug", "info"])),
            capture,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )
    logger = structlog.get_logger()

    expected_line = sys._getframe().f_lineno + 1
    logger.debug("first")
    logger.info("second")
    logger.warning("third")

    first, second, third = capture.entries
    assert first["fn"] == "test_structlog_processor_reports_call_site"
    assert first["src"].endswith(f"test_logger.py:{expected_line}")
    assert second["src"].endswith(f"test_logger.py:{expected_line + 1}")
    assert "fn" not in third and "src" not in third


def test_async_methods_degrade_to_empty_caller():
    """Test that async log methods fall back to an unresolved caller.

    structlog runs the processor chain of ``adebug`` on an executor thread,
    so the coroutine that logged is not on the inspected stack.
    """
    capture = LogCapture()
    structlog.configure(
        processors=[create_hook(), capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )
    logger = structlog.get_logger()

    async def app_coroutine():
        await logger.adebug("async")

    asyncio.run(app_coroutine())

    (entry,) = capture.entries
    assert entry["src"] == ":0"
    assert "fn" not in entry


def test_sync_logging_inside_coroutine_reports_call_site():
    capture = LogCapture()
    structlog.configure(
        processors=[create_hook(), capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )
    logger = structlog.get_logger()

    async def app_coroutine():
        logger.debug("sync in async")

    asyncio.run(app_coroutine())

    assert capture.entries[0]["fn"] == "app_coroutine"


def test_bound_logger_reports_call_site():
    """Test that bound context loggers resolve the same call site."""
    capture = LogCapture()
    structlog.configure(
        processors=[create_hook(), capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    )
    logger = structlog.get_logger().bind(request_id="abc").new(user="u1")

    logger.debug("bound")

    assert capture.entries[0]["fn"] == "test_bound_logger_reports_call_site"


def test_setup_logging_renders_fields(stream):
    """Test that rendered JSON records carry the enriched fields."""
    logger = setup_logging(
        log_level="DEBUG",
        hook_options=HookOptions(app_version="v1.2.3"),
        stream=stream,
    )

    expected_line = sys._getframe().f_lineno + 1
    logger.debug("hello", answer=42)
    logger.info("not enriched")

    debug_record, info_record = read_records(stream)
    assert debug_record["event"] == "hello"
    assert debug_record["answer"] == 42
    assert debug_record["level"] == "debug"
    assert debug_record["fn"] == "test_setup_logging_renders_fields"
    assert debug_record["src"].endswith(f"test_logger.py:{expected_line}")
    assert debug_record["ver"] == "v1.2.3"
    assert "timestamp" in debug_record
    assert "src" not in info_record


def test_level_filtering_skips_records(stream):
    logger = setup_logging(log_level="INFO", stream=stream)
    logger.debug("dropped")
    assert read_records(stream) == []


def test_stack_offset_skips_wrapper(stream):
    """Test that a stack offset reports the caller of a logging helper."""
    logger = setup_logging(
        log_level="DEBUG", hook_options=HookOptions(stack_offset=1), stream=stream
    )

    log_through_wrapper(logger, "wrapped")

    record = read_records(stream)[0]
    assert record["fn"] == "test_stack_offset_skips_wrapper"


def test_wrapper_without_offset_reports_wrapper(stream):
    logger = setup_logging(log_level="DEBUG", stream=stream)

    log_through_wrapper(logger, "wrapped")

    assert read_records(stream)[0]["fn"] == "log_through_wrapper"


def test_additional_ignores_skip_wrapper_module(stream):
    """Test that wrapper modules can be ignored by name."""
    logger = setup_logging(
        log_level="DEBUG",
        hook_options=HookOptions(additional_ignores=(__name__,)),
        stream=stream,
    )

    logger.debug("ignored module")

    record = read_records(stream)[0]
    assert record["fn"] != "test_additional_ignores_skip_wrapper_module"


def test_extra_processors_see_enriched_fields(stream):
    seen: list[dict] = []

    def collect(_, __, event_dict):
        seen.append(dict(event_dict))
        return event_dict

    logger = setup_logging(log_level="DEBUG", stream=stream, extra_processors=(collect,))
    logger.debug("collected")

    assert seen[0]["fn"] == "test_extra_processors_see_enriched_fields"


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    assert resolve_log_level() == logging.WARNING
    assert resolve_log_level("debug") == logging.DEBUG


def test_invalid_log_level():
    with pytest.raises(ValueError):
        resolve_log_level("LOUD")


def test_get_logger_configures_defaults():
    """Test that get_logger returns a cached configured logger."""
    logger = get_logger()
    assert logger is get_logger()
    assert isinstance(logger, structlog.stdlib.BoundLogger)


def test_reset_logger_multiple_calls(stream):
    """Test that reset_logger can be called multiple times safely."""
    setup_logging(stream=stream)

    for _ in range(3):
        reset_logger()

    assert logging.getLogger().handlers == []
    assert get_logger() is not None


def test_concurrent_logging(stream):
    """Test that every thread reports its own call site."""
    logger = setup_logging(log_level="DEBUG", stream=stream)
    errors: list[Exception] = []

    def worker():
        try:
            for _ in range(20):
                logger.debug("threaded")
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
        assert not t.is_alive(), "Thread timed out"

    assert errors == []
    records = read_records(stream)
    assert len(records) == 100
    assert {r["fn"] for r in records} == {"worker"}
