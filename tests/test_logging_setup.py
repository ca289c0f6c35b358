"""
Tests for logging_setup module.

Verifies:
- JSON structured logging format
- Component and severity tagging
- Session ID correlation
- PII-aware logging helpers
- Log level configuration
"""
import json
import logging
from io import StringIO
from datetime import datetime
from pathlib import Path

import pytest

from logging_setup import (
    setup_logging,
    get_logger,
    Component,
    JSONFormatter,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    root.handlers = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def capture_logs():
    """Capture log output to a string buffer."""
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger()
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)

    yield buffer

    logger.handlers = saved_handlers
    logger.setLevel(saved_level)


def _entries(buffer):
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


def test_json_formatter_basic(capture_logs):
    logger = get_logger(Component.FUNCTION_EXECUTOR)
    logger.info("Function executed", function="display_patent")

    entry = _entries(capture_logs)[0]

    assert entry["severity"] == "info"
    assert entry["component"] == "function_executor"
    assert entry["message"] == "Function executed"
    assert entry["function"] == "display_patent"
    assert "timestamp" in entry


def test_json_formatter_timestamp_format(capture_logs):
    """Test that timestamp is in ISO8601 format."""
    get_logger(Component.EVENT_RELAY).info("Timestamp test")

    timestamp = _entries(capture_logs)[0]["timestamp"]
    assert datetime.fromisoformat(timestamp.replace("Z", "+00:00")) is not None


def test_session_id_correlation(capture_logs):
    get_logger(Component.SESSION_REGISTRY, session_id="1735689600000").info("Session test")

    assert _entries(capture_logs)[0]["session_id"] == "1735689600000"


def test_session_id_absent_when_not_provided(capture_logs):
    get_logger(Component.EVENT_RELAY).info("No session")

    assert "session_id" not in _entries(capture_logs)[0]


def test_with_session_creates_new_logger(capture_logs):
    base_logger = get_logger(Component.FUNCTION_EXECUTOR)
    session_logger = base_logger.with_session("1735689600001")

    session_logger.info("With session")
    base_logger.info("Without session")

    first, second = _entries(capture_logs)
    assert first["session_id"] == "1735689600001"
    assert "session_id" not in second


def test_pii_logging(capture_logs):
    """Draft text goes in a separate pii field."""
    logger = get_logger(Component.DOCUMENT_STORE, session_id="1735689600000")
    logger.info_pii("Draft text appended", text="A widget comprising a hinge")

    entry = _entries(capture_logs)[0]
    assert entry["pii"] == {"text": "A widget comprising a hinge"}
    assert entry["message"] == "Draft text appended"


def test_debug_pii_method(capture_logs):
    get_logger(Component.FUNCTION_EXECUTOR).debug_pii("Arguments", arguments='{"title":"Widget"}')

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "debug"
    assert entry["pii"]["arguments"] == '{"title":"Widget"}'


def test_severity_levels(capture_logs):
    logger = get_logger(Component.VOICE_SESSION)

    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")
    logger.error("Error message")

    severities = [entry["severity"] for entry in _entries(capture_logs)]
    assert severities == ["debug", "info", "warning", "error"]


def test_component_enum():
    assert Component.PATENT_SERVICE.value == "patent_service"
    assert Component.DOCUMENT_STORE.value == "document_store"
    assert Component.EVENT_RELAY.value == "event_relay"
    assert Component.SESSION_BOOTSTRAP.value == "session_bootstrap"


def test_component_string_fallback(capture_logs):
    get_logger("custom_component").info("Test")

    assert _entries(capture_logs)[0]["component"] == "custom_component"


def test_non_json_extra_fields_stringified(capture_logs):
    get_logger(Component.DOCUMENT_STORE).info("Created", path=Path("patents/1/main.md"), count=2)

    entry = _entries(capture_logs)[0]
    assert entry["path"] == str(Path("patents/1/main.md"))
    assert entry["count"] == 2


def test_exception_logging(capture_logs):
    logger = get_logger(Component.API_SERVER)

    try:
        raise ValueError("Test exception")
    except ValueError:
        logger.exception("Exception occurred")

    entry = _entries(capture_logs)[0]
    assert entry["severity"] == "error"
    assert "ValueError: Test exception" in entry["exception"]


def test_setup_logging_json():
    setup_logging(level="DEBUG", use_json=True)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_setup_logging_text():
    setup_logging(level="INFO", use_json=False)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.INFO
    assert len(root_logger.handlers) == 1
    assert not isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_setup_logging_unknown_level_defaults_to_info():
    setup_logging(level="CHATTY")
    assert logging.getLogger().level == logging.INFO
