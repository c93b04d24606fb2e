# tests/unit/core/test_logging.py
"""Tests for structured logging configuration."""

import io
import json
import logging

import pytest
import structlog


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_structlog_json_output(self, log_stream: io.StringIO) -> None:
        """structlog loggers emit one JSON object per record."""
        from logstream.core.logging import configure_logging

        configure_logging(json_output=True, stream=log_stream)
        structlog.get_logger("test").info("Session finished", host="gw", envelopes_written=3)

        data = json.loads(log_stream.getvalue().strip().splitlines()[-1])
        assert data["event"] == "Session finished"
        assert data["host"] == "gw"
        assert data["envelopes_written"] == 3
        assert data["level"] == "info"
        assert "timestamp" in data
        assert "_record" not in data

    def test_stdlib_loggers_share_format(self, log_stream: io.StringIO) -> None:
        """stdlib loggers go through the same processor chain."""
        from logstream.core.logging import configure_logging

        configure_logging(json_output=True, stream=log_stream)
        logging.getLogger("test.stdlib").warning("from stdlib")

        data = json.loads(log_stream.getvalue().strip().splitlines()[-1])
        assert data["event"] == "from stdlib"

    def test_console_output(self, log_stream: io.StringIO) -> None:
        from logstream.core.logging import configure_logging

        configure_logging(json_output=False, stream=log_stream)
        structlog.get_logger("test").warning("Session failed", host="gw")

        output = log_stream.getvalue()
        assert "Session failed" in output
        assert "host=gw" in output
        assert not output.startswith("{")

    def test_level_filters_records(self, log_stream: io.StringIO) -> None:
        from logstream.core.logging import configure_logging

        configure_logging(level="WARNING", stream=log_stream)
        structlog.get_logger("test").info("hidden")

        assert log_stream.getvalue() == ""

    def test_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        """stdout is reserved for envelope lines."""
        from logstream.core.logging import configure_logging

        configure_logging()
        structlog.get_logger("test").info("diagnostic")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "diagnostic" in captured.err

    def test_noisy_http_loggers_silenced(self) -> None:
        """HTTP client internals stay at WARNING even in DEBUG mode."""
        from logstream.core.logging import configure_logging

        configure_logging(level="DEBUG", stream=io.StringIO())

        assert logging.getLogger().level == logging.DEBUG
        for name in ("httpx", "httpcore"):
            assert logging.getLogger(name).getEffectiveLevel() >= logging.WARNING
