"""Tests for structured logging."""

import json
import logging
import sys

import pytest

from topcharts.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="topcharts.test",
        level=logging.ERROR,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestCorrelationId:
    """Test correlation ID functionality."""

    def test_set_and_get_correlation_id(self):
        result = set_correlation_id("test-123-abc")
        assert result == "test-123-abc"
        assert get_correlation_id() == "test-123-abc"

    def test_set_correlation_id_generates_uuid_when_none(self):
        result = set_correlation_id(None)
        assert len(result) == 36
        assert get_correlation_id() == result

    def test_filter_adds_correlation_id(self):
        set_correlation_id("abc")
        record = _record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "abc"


class TestFormatters:
    def test_json_formatter_fields(self):
        set_correlation_id("req-1")
        record = _record()
        CorrelationIdFilter().filter(record)
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")

        data = json.loads(formatter.format(record))

        assert data["message"] == "hello"
        assert data["level"] == "ERROR"
        assert data["logger"] == "topcharts.test"
        assert data["correlation_id"] == "req-1"

    def test_compact_formatter_shows_chain_root_first(self):
        try:
            try:
                raise ValueError("root cause")
            except ValueError as e:
                raise RuntimeError("wrapper") from e
        except RuntimeError:
            exc_info = sys.exc_info()

        text = CompactExceptionFormatter().formatException(exc_info)
        lines = [line for line in text.splitlines() if line.startswith("╰─►")]

        assert lines == ["╰─► ValueError: root cause", "╰─► RuntimeError: wrapper"]


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        assert logging.getLogger("test").getEffectiveLevel() <= logging.DEBUG

    def test_configure_logging_json_format(self):
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CustomJsonFormatter)

    def test_configure_logging_replaces_handlers(self):
        configure_logging(log_level="INFO")
        configure_logging(log_level="INFO")
        assert len(logging.getLogger().handlers) == 1

    def test_invalid_level_falls_back_to_info(self):
        configure_logging(log_level="LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_http_libraries_quieted(self):
        configure_logging(log_level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
