"""Tests for ``portfolio_core.core.logging`` - structlog configuration."""

from __future__ import annotations

import io
import json

import pytest
import structlog

from portfolio_core.core.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture
def log_buffer():
    """Route configured structlog output into a buffer."""
    buffer = io.StringIO()

    def configure(**kwargs):
        configure_logging(**kwargs)
        structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=buffer))
        return buffer

    yield configure
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def records(buffer: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    def test_json_output_is_ecs_shaped(self, log_buffer):
        buffer = log_buffer(level="INFO", json_format=True, service="portfolio-test")
        get_logger("tests").info("manifest_loaded", ports=["llm"])

        record = records(buffer)[-1]
        assert record["event"] == "manifest_loaded"
        assert record["ports"] == ["llm"]
        assert record["service.name"] == "portfolio-test"
        assert record["log.level"] == "info"
        assert "@timestamp" in record

    def test_level_filters(self, log_buffer):
        buffer = log_buffer(level="WARNING", json_format=True)
        get_logger("tests").info("hidden")
        get_logger("tests").warning("shown")
        assert [r["event"] for r in records(buffer)] == ["shown"]

    def test_log_context_binds_and_unbinds(self, log_buffer):
        buffer = log_buffer(level="INFO", json_format=True)
        logger = get_logger("tests")

        with LogContext(manifest_path="/m.yaml"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = records(buffer)[-2:]
        assert inside["manifest_path"] == "/m.yaml"
        assert "manifest_path" not in outside

    def test_bind_context(self, log_buffer):
        buffer = log_buffer(level="INFO", json_format=True)
        bind_context(request_id="r1")
        get_logger("tests").info("bound")
        unbind_context("request_id")
        get_logger("tests").info("unbound")

        bound, unbound = records(buffer)[-2:]
        assert bound["request_id"] == "r1"
        assert "request_id" not in unbound
