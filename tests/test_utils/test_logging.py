"""Tests for logging utilities."""

import json
import logging
import sys

import pytest

from taintboost.utils.logging import (
    ROOT_LOGGER,
    ComponentLogger,
    JSONFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging so later tests still see records through caplog."""
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestComponentLogger:
    """Test ComponentLogger."""

    def test_logger_name(self):
        assert get_logger("classifier", parent="endpoints")._logger.name == (
            "taintboost.endpoints.classifier"
        )
        assert ComponentLogger("pipeline")._logger.name == "taintboost.pipeline"

    def test_context_in_message(self, caplog):
        logger = get_logger("demo")
        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER):
            logger.info("Classified graph", query="xss", nodes=3)

        record = caplog.records[-1]
        assert record.getMessage() == "Classified graph | query=xss | nodes=3"
        assert record.context == {"component": "demo", "query": "xss", "nodes": 3}


class TestSetupLogging:
    """Test setup_logging."""

    def test_json_file_logging(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(level="DEBUG", log_file=log_file, json_format=True)

        get_logger("demo").debug("Configuration built", query="sql-injection")
        for handler in restore_root_logger.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["level"] == "DEBUG"
        assert entry["logger"] == "taintboost.demo"
        assert entry["context"]["query"] == "sql-injection"

    def test_console_only(self, restore_root_logger):
        logger = setup_logging(level="warning")

        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.propagate is False


class TestJSONFormatter:
    """Test JSONFormatter."""

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "taintboost.x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "failed"
        assert "ValueError: bad" in data["exception"]
