"""Tests for structured logging configuration."""

import json
import logging
import sys

import pytest

from pet_access.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    caller_id_ctx,
    correlation_id_ctx,
    get_logger,
    setup_logging,
)


def _record(level=logging.INFO, msg="Test", exc_info=None, **extra_fields):
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="/app/test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestJsonFormatter:
    """Tests for JSON log formatting."""

    def test_json_format_basic(self):
        formatter = JsonFormatter(service_name="test-service")

        parsed = json.loads(formatter.format(_record(msg="Test message")))

        assert parsed["level"] == "INFO"
        assert parsed["service"] == "test-service"
        assert parsed["message"] == "Test message"
        assert parsed["logger"] == "test.logger"
        assert "timestamp" in parsed

    def test_request_context_included(self):
        """Correlation and caller ids bound to the request appear in output."""
        formatter = JsonFormatter()
        correlation_token = correlation_id_ctx.set("corr-123")
        caller_token = caller_id_ctx.set("owner-1")
        try:
            parsed = json.loads(formatter.format(_record()))
        finally:
            caller_id_ctx.reset(caller_token)
            correlation_id_ctx.reset(correlation_token)

        assert parsed["correlation_id"] == "corr-123"
        assert parsed["caller_id"] == "owner-1"

    def test_no_context_outside_request(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert "correlation_id" not in parsed
        assert "caller_id" not in parsed

    def test_extra_fields_merged(self):
        parsed = json.loads(
            JsonFormatter().format(_record(grant_id="g1", scopes=["pet:read"]))
        )
        assert parsed["grant_id"] == "g1"
        assert parsed["scopes"] == ["pet:read"]

    def test_error_includes_location(self):
        record = _record(level=logging.ERROR)
        record.funcName = "test_function"

        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["location"] == {
            "file": "/app/test.py",
            "line": 42,
            "function": "test_function",
        }

    def test_exception_included(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(
            JsonFormatter().format(_record(level=logging.ERROR, exc_info=exc_info))
        )

        assert "ValueError" in parsed["exception"]


class TestTextFormatter:
    """Tests for text log formatting."""

    def test_text_format_basic(self):
        output = TextFormatter(service_name="test-service").format(
            _record(msg="Test message")
        )

        assert "test-service" in output
        assert "INFO" in output
        assert "Test message" in output
        assert "[-]" in output

    def test_text_format_with_correlation_id(self):
        token = correlation_id_ctx.set("abc-123")
        try:
            output = TextFormatter().format(_record())
        finally:
            correlation_id_ctx.reset(token)

        assert "[abc-123]" in output

    def test_extra_fields_as_pairs(self):
        output = TextFormatter().format(_record(grant_id="g1"))
        assert output.endswith("grant_id=g1")


class TestStructuredLogger:
    """Tests for StructuredLogger wrapper."""

    def test_get_logger(self):
        logger = get_logger("pet_access.test")
        assert isinstance(logger, StructuredLogger)
        assert logger.name == "pet_access.test"

    def test_extra_fields_attached(self, caplog):
        logger = get_logger("test.logger")

        with caplog.at_level(logging.INFO):
            logger.info("Access grant revoked", grant_id="g1")

        record = caplog.records[-1]
        assert record.getMessage() == "Access grant revoked"
        assert record.extra_fields == {"grant_id": "g1"}

    def test_warning_level(self, caplog):
        with caplog.at_level(logging.WARNING):
            get_logger("test.logger").warning("Pet access denied")
        assert caplog.records[-1].levelno == logging.WARNING

    def test_exception_captures_traceback(self, caplog):
        logger = get_logger("test.logger")

        with caplog.at_level(logging.ERROR):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("Request failed", path="/health")

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert record.extra_fields == {"path": "/health"}


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root_handlers(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    @pytest.mark.parametrize(
        "log_format,formatter_type",
        [("json", JsonFormatter), ("text", TextFormatter)],
    )
    def test_installs_formatter(self, log_format, formatter_type):
        setup_logging(log_format=log_format, log_level="DEBUG", service_name="svc")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, formatter_type)
        assert formatter.service_name == "svc"

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(log_level="NOPE")
        assert logging.getLogger().level == logging.INFO
