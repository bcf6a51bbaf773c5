"""Unit tests for logging configuration."""

import json
import logging

import pytest
import structlog

from src.core.config import Settings
from src.core.logging import build_formatter, configure_logging


def _record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="src.rag.processor",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestFormatter:
    def test_json_lines(self) -> None:
        line = build_formatter("json").format(_record("[Processor] Processing file: a.txt"))

        payload = json.loads(line)
        assert payload["event"] == "[Processor] Processing file: a.txt"
        assert payload["level"] == "info"
        assert payload["logger"] == "src.rag.processor"
        assert "timestamp" in payload

    def test_console_lines_are_not_json(self) -> None:
        line = build_formatter("console").format(_record("ready", logging.WARNING))

        assert "ready" in line
        with pytest.raises(json.JSONDecodeError):
            json.loads(line)


class TestConfigureLogging:
    def test_installs_single_processor_handler(self, restore_root_logger) -> None:
        settings = Settings(_env_file=None, log_level="debug", log_format="json")

        configure_logging(settings)

        root = restore_root_logger
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
