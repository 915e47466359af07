"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from restaurant.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    TEXT_FORMAT,
    get_log_context,
    get_logger,
    get_logging_config,
    request_id_var,
)


def make_record(msg="Test message", **attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="restaurant.test",
        level=logging.WARNING,
        pathname="test.py",
        lineno=7,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "restaurant.test"
        assert data["message"] == "Test message"
        assert data["source"] == {"file": "test.py", "line": 7, "function": None}
        assert "timestamp" in data

    def test_rate_limit_context(self):
        record = make_record(
            "Rate limit exceeded",
            client_id="203.0.113.5",
            endpoint="reservations",
            retry_after=42,
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["client_id"] == "203.0.113.5"
        assert data["endpoint"] == "reservations"
        assert data["extra"] == {"retry_after": 42}

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in "".join(data["exception"])


class TestContextFilter:
    def test_adds_defaults(self):
        record = make_record()
        assert ContextFilter().filter(record) is True
        assert record.request_id is None
        assert record.client_id is None

    def test_keeps_existing(self):
        record = make_record(endpoint="catering")
        ContextFilter().filter(record)
        assert record.endpoint == "catering"

    def test_request_id_from_context(self):
        token = request_id_var.set("req-7")
        try:
            record = make_record()
            ContextFilter().filter(record)
        finally:
            request_id_var.reset(token)
        assert record.request_id == "req-7"


class TestLoggingConfig:
    """Test dictConfig generation."""

    def test_json_format(self):
        with patch("restaurant.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["formatters"]["default"] == {"()": "restaurant.app.core.logging.JSONFormatter"}
        assert config["loggers"]["restaurant"]["level"] == "DEBUG"

    def test_text_format(self):
        with patch("restaurant.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["formatters"]["default"] == {"format": TEXT_FORMAT}
        assert config["handlers"]["error_console"]["level"] == "ERROR"


def test_get_log_context_drops_none():
    assert get_log_context(client_id="1.2.3.4", endpoint=None, max_requests=5) == {
        "client_id": "1.2.3.4",
        "max_requests": 5,
    }


def test_get_logger():
    assert get_logger("restaurant.x").name == "restaurant.x"
