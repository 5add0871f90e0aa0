"""Tests for logging configuration and formatters."""

import json
import logging

import pytest

from intake.logging import ComponentLoggerAdapter, get_logger
from intake.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from intake.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level

    yield root_logger

    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def test_json_formatter_basic(logger):
    """Test JSONFormatter produces valid JSON with mandatory fields."""
    formatter = JSONFormatter()

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    log_obj = json.loads(formatter.format(record))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert "timestamp" in log_obj


def test_json_formatter_with_extra_fields(logger):
    """Test JSONFormatter includes extra fields."""
    formatter = JSONFormatter()

    record = logger.makeRecord(
        "test",
        logging.INFO,
        "test.py",
        1,
        "Created record",
        (),
        None,
        extra={"event": "ingest.created", "record_id": 42, "final": True},
    )

    log_obj = json.loads(formatter.format(record))

    assert log_obj["event"] == "ingest.created"
    assert log_obj["record_id"] == 42
    assert log_obj["final"] is True


def test_contextual_filter_adds_static_fields(logger):
    """Test ContextualFilter adds static service and environment fields."""
    context_filter = ContextualFilter(service="test-service", environment="test")

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    context_filter.filter(record)

    assert record.service == "test-service"
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    """Test ContextualFilter adds fields from log context."""
    context_filter = ContextualFilter()

    with log_context(entity_type="deal_lead", notification_id="confirmation:ada@example.com"):
        record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
        context_filter.filter(record)

    assert record.entity_type == "deal_lead"
    assert record.notification_id == "confirmation:ada@example.com"


def test_contextual_filter_keeps_explicit_extra(logger):
    """Test that explicit extra fields win over context fields of the same name."""
    context_filter = ContextualFilter()

    with log_context(queued_id=1):
        record = logger.makeRecord(
            "test", logging.INFO, "test.py", 1, "Test message", (), None, extra={"queued_id": 2}
        )
        context_filter.filter(record)

    assert record.queued_id == 2


def test_json_formatter_with_context(logger):
    """Test full pipeline: context + filter + JSON formatter."""
    formatter = JSONFormatter()
    context_filter = ContextualFilter(service=SERVICE_NAME, environment="test")

    with log_context(entity_type="subscription"):
        record = logger.makeRecord(
            "test",
            logging.INFO,
            "test.py",
            1,
            "Duplicate subscription submission",
            (),
            None,
            extra={"event": "ingest.duplicate"},
        )
        context_filter.filter(record)
        log_obj = json.loads(formatter.format(record))

    assert log_obj["message"] == "Duplicate subscription submission"
    assert log_obj["event"] == "ingest.duplicate"
    assert log_obj["service"] == "record-intake"
    assert log_obj["environment"] == "test"
    assert log_obj["entity_type"] == "subscription"


def test_key_value_formatter_with_extras(logger):
    """Test KeyValueFormatter includes extra fields as key=value pairs."""
    formatter = KeyValueFormatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    record = logger.makeRecord(
        "test",
        logging.WARNING,
        "test.py",
        1,
        "Sender failed",
        (),
        None,
        extra={"event": "delivery.attempt.failed", "attempt": 2, "reason": "not verified"},
    )

    output = formatter.format(record)

    assert "[WARNING]" in output
    assert "Sender failed" in output
    assert "event=delivery.attempt.failed" in output
    assert "attempt=2" in output
    assert 'reason="not verified"' in output


def test_key_value_formatter_skips_service_fields(logger):
    """Test that service metadata is left out of key-value lines."""
    formatter = KeyValueFormatter("%(message)s")
    context_filter = ContextualFilter(service=SERVICE_NAME, environment="test")

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Hello", (), None)
    context_filter.filter(record)

    assert formatter.format(record) == "Hello"


def test_component_logger_adds_component(caplog):
    """Test that get_logger binds the component onto every record."""
    component_logger = get_logger("intake.tests.component", component="ingest")
    assert isinstance(component_logger, ComponentLoggerAdapter)

    with caplog.at_level(logging.INFO, logger="intake.tests.component"):
        component_logger.info("Created", extra={"event": "ingest.created"})

    record = caplog.records[-1]
    assert record.component == "ingest"
    assert record.event == "ingest.created"


def test_get_logger_without_component():
    """Test that get_logger returns a plain logger when no component is given."""
    assert isinstance(get_logger("intake.tests.plain"), logging.Logger)


def test_configure_logging_invalid_level():
    """Test configure_logging rejects invalid log level."""
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    """Test configure_logging rejects invalid format type."""
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="invalid")


def test_configure_logging_json_format(restore_root_logger):
    """Test configure_logging with JSON format."""
    configure_logging(level="DEBUG", format_type="json", environment="test")

    assert len(restore_root_logger.handlers) == 1
    handler = restore_root_logger.handlers[0]
    assert isinstance(handler.formatter, JSONFormatter)
    assert restore_root_logger.level == logging.DEBUG


def test_configure_logging_key_value_format(restore_root_logger):
    """Test configure_logging with key-value format."""
    configure_logging(level="INFO", format_type="key-value", environment="test")

    handler = restore_root_logger.handlers[0]
    assert isinstance(handler.formatter, KeyValueFormatter)
    assert any(isinstance(f, ContextualFilter) for f in handler.filters)


def test_timestamp_format_in_json(logger):
    """Test that JSON formatter produces correct ISO-8601 timestamp format."""
    formatter = JSONFormatter()

    record = logger.makeRecord("test", logging.INFO, "test.py", 1, "Test message", (), None)
    timestamp = json.loads(formatter.format(record))["timestamp"]

    assert timestamp.endswith("Z")
    assert "T" in timestamp
    assert len(timestamp) == 24  # 2025-11-04T10:30:00.123Z


def test_json_formatter_no_duplicate_fields(logger):
    """Test that JSON formatter doesn't duplicate standard fields in extras."""
    formatter = JSONFormatter()

    record = logger.makeRecord(
        "test", logging.INFO, "test.py", 1, "Test message", (), None, extra={"event": "test.event"}
    )
    log_obj = json.loads(formatter.format(record))

    assert "name" not in log_obj
    assert "event" in log_obj
