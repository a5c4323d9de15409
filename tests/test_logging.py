"""Unit tests for the logging configuration module.

This test module validates the structured logging configuration and the
request context binding used by the API handlers.
"""

import json
import logging

import pytest
import structlog

from depgraph.log_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    new_request_id,
    request_context,
    unbind_context,
)


def events(caplog) -> list[dict]:
    """Parse the JSON-rendered records captured by caplog."""
    return [json.loads(record.getMessage()) for record in caplog.records]


class TestLoggingConfiguration:
    """Test cases for logging configuration."""

    def test_configure_logging_info_level(self):
        """Test logging configuration with INFO level."""
        configure_logging(level="INFO", json_logs=True)
        logger = get_logger("test")
        assert logger is not None

    def test_configure_logging_lower_case_level(self):
        """Test that level names are case-insensitive."""
        configure_logging(level="debug", json_logs=True)

    def test_configure_logging_invalid_level(self):
        """Test logging configuration with invalid level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", json_logs=True)

    def test_configure_logging_console_renderer(self):
        """Test logging configuration with console renderer."""
        configure_logging(level="INFO", json_logs=False)
        logger = get_logger("test")
        assert logger is not None


class TestContextBinding:
    """Test cases for context binding functionality."""

    def setup_method(self):
        """Set up test environment before each test."""
        configure_logging(level="INFO", json_logs=True)
        clear_context()

    def teardown_method(self):
        """Clean up after each test."""
        clear_context()

    def test_json_event_fields(self, caplog):
        """Test that events carry their name, level and key-value context."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        logger.info("dependency_added", task_id="a", lag_time=30)

        [event] = events(caplog)
        assert event["event"] == "dependency_added"
        assert event["level"] == "info"
        assert event["task_id"] == "a"
        assert event["lag_time"] == 30
        assert "timestamp" in event

    def test_request_context_binds_and_restores(self, caplog):
        """Test that request context applies inside the block only."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        with request_context(request_id="req-1", user_id="user-1") as request_id:
            logger.info("inside")
        logger.info("outside")

        inside, outside = events(caplog)
        assert request_id == "req-1"
        assert inside["request_id"] == "req-1"
        assert inside["user_id"] == "user-1"
        assert "request_id" not in outside

    def test_request_context_generates_id(self):
        """Test that a request ID is generated when omitted."""
        with request_context() as request_id:
            assert len(request_id) == 32

        assert new_request_id() != new_request_id()

    def test_nested_request_context(self, caplog):
        """Test that the outer request ID is restored after a nested block."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        with request_context(request_id="outer"):
            with request_context(request_id="inner"):
                logger.info("nested")
            logger.info("after_nested")

        nested, after = events(caplog)
        assert nested["request_id"] == "inner"
        assert after["request_id"] == "outer"

    def test_unbind_and_clear_context(self, caplog):
        """Test removing bound variables."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        bind_context(task_id="a", user_id="user-1")
        logger.info("full")
        unbind_context("task_id")
        logger.info("partial")
        clear_context()
        logger.info("empty")

        full, partial, empty = events(caplog)
        assert full["task_id"] == "a"
        assert "task_id" not in partial
        assert partial["user_id"] == "user-1"
        assert "user_id" not in empty


class TestStructuredLogging:
    """Test cases for structured logging output."""

    def setup_method(self):
        """Set up test environment before each test."""
        configure_logging(level="INFO", json_logs=True)
        clear_context()

    def test_log_with_exception(self, caplog):
        """Test logging with exception information."""
        caplog.set_level(logging.ERROR)
        logger = get_logger("test")

        def _raise_test_error():
            msg = "Test exception"
            raise ValueError(msg)

        try:
            _raise_test_error()
        except ValueError:
            logger.exception("error_occurred", operation="test")

        [event] = events(caplog)
        assert event["event"] == "error_occurred"
        assert "ValueError: Test exception" in event["exception"]

    def test_log_levels(self, caplog):
        """Test different log levels."""
        configure_logging(level="DEBUG", json_logs=True)
        caplog.set_level(logging.DEBUG)
        logger = get_logger("test")

        logger.debug("debug_message")
        logger.info("info_message")
        logger.warning("warning_message")
        logger.error("error_message")

        assert [e["level"] for e in events(caplog)] == ["debug", "info", "warning", "error"]

    def test_caller_information(self, caplog):
        """Test that caller information is included in logs."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        logger.info("test_caller_info")

        [event] = events(caplog)
        assert event["func_name"] == "test_caller_information"
        assert event["module"] == "test_logging"

    def test_bound_logger_type(self):
        """Test that bound loggers wrap the standard library."""
        logger = get_logger("test").bind(component="graph")
        assert isinstance(logger, structlog.stdlib.BoundLogger)
