"""Tests for JSON logger module."""

import json
import logging
import sys
from unittest.mock import patch

from src.shared.logger import JSONFormatter, get_logger


def _record(msg: str = "Test message", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=None,
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_format_basic_message(self) -> None:
        """Test basic log record formatting as JSON."""
        result = json.loads(JSONFormatter().format(_record()))

        assert result["level"] == "INFO"
        assert result["message"] == "Test message"
        assert result["logger"] == "test"
        assert "timestamp" in result
        assert "exception" not in result

    def test_format_record_with_context(self) -> None:
        """Test context dict merges into JSON output."""
        record = _record("Path divergence")
        record.context = {"bars": 420, "max_error": {"rsi": 0.01}}  # type: ignore[attr-defined]

        result = json.loads(JSONFormatter().format(record))

        assert result["bars"] == 420
        assert result["max_error"] == {"rsi": 0.01}
        assert result["message"] == "Path divergence"

    def test_non_serializable_context(self) -> None:
        """Test values json cannot encode fall back to str."""
        record = _record()
        record.context = {"config": object()}  # type: ignore[attr-defined]

        result = json.loads(JSONFormatter().format(record))

        assert result["config"].startswith("<object object")

    def test_format_exception(self) -> None:
        """Test exception info is rendered into the payload."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed", exc_info=sys.exc_info())

        result = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in result["exception"]


class TestGetLogger:
    """Tests for get_logger factory."""

    def test_get_logger_skips_handler_when_already_exists(self) -> None:
        """Test get_logger does not add duplicate handlers."""
        logger_name = "test.duplicate_handler_check"
        logger = logging.getLogger(logger_name)
        logger.handlers.clear()

        result1 = get_logger(logger_name)
        handler_count = len(result1.handlers)
        result2 = get_logger(logger_name)

        assert handler_count == 1
        assert len(result2.handlers) == handler_count
        assert isinstance(result1.handlers[0].formatter, JSONFormatter)

    def test_explicit_level(self) -> None:
        logger = get_logger("test.explicit_level", level=logging.WARNING)
        assert logger.level == logging.WARNING

    @patch.dict("os.environ", {"LOG_LEVEL": "debug"}, clear=True)
    def test_level_from_environment(self) -> None:
        logger = get_logger("test.env_level")
        assert logger.level == logging.DEBUG

    @patch.dict("os.environ", {"LOG_LEVEL": "chatty"}, clear=True)
    def test_unknown_level_falls_back_to_info(self) -> None:
        logger = get_logger("test.bad_level")
        assert logger.level == logging.INFO
