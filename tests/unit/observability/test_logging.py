"""Tests for structlog setup."""

from __future__ import annotations

import json
import logging

import pytest

from everything_client.config.settings import ObservabilitySettings
from everything_client.observability.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_sets_level_and_single_handler(self, restore_root_logger) -> None:
        setup_logging(ObservabilitySettings(log_level="debug"))
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1

    def test_json_format_renders_stdlib_records(self, restore_root_logger, capsys) -> None:
        setup_logging(ObservabilitySettings(log_level="info", log_format="json"))

        logging.getLogger("everything_client.test").info("Connected to %s", "http://everything.test")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Connected to http://everything.test"
        assert event["level"] == "info"
        assert event["logger"] == "everything_client.test"

    def test_defaults_without_settings(self, restore_root_logger) -> None:
        setup_logging()
        assert restore_root_logger.level == logging.INFO
