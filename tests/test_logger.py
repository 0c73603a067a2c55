"""
Tests for recipe engine logging utilities.
"""

import json
import logging
import sys
from unittest.mock import patch

import pytest
from rich.logging import RichHandler

from recipe_engine.config.settings import Settings
from recipe_engine.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    get_logger,
    log_performance_metric,
    log_scenario_event,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    with patch("recipe_engine.monitoring.logger.get_settings", return_value=Settings()):
        yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="recipe_engine.browser.executor",
        level=logging.WARNING,
        pathname=__file__,
        lineno=42,
        msg="Action failed",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_extras_included(self):
        output = JSONFormatter().format(make_record(action_index=1, selector="#submit"))
        data = json.loads(output)

        assert data["level"] == "WARNING"
        assert data["logger"] == "recipe_engine.browser.executor"
        assert data["message"] == "Action failed"
        assert data["action_index"] == 1
        assert data["selector"] == "#submit"
        assert "args" not in data
        assert "exception" not in data

    def test_unserializable_values(self):
        data = json.loads(JSONFormatter().format(make_record(path=object())))
        assert data["path"].startswith("<object object")

    def test_exception_formatted(self):
        try:
            raise ValueError("bad verdict")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad verdict" in data["exception"]


class TestContextLogger:
    def test_plain_logger_without_context(self):
        assert isinstance(get_logger("recipe_engine.test"), logging.Logger)

    def test_context_merged(self, caplog):
        logger = get_logger("recipe_engine.test", execution_id="run-42")
        assert isinstance(logger, ContextLogAdapter)

        with caplog.at_level(logging.INFO, logger="recipe_engine.test"):
            logger.info("Scenario finished", extra={"status": "PASS"})

        record = caplog.records[-1]
        assert record.execution_id == "run-42"
        assert record.status == "PASS"


class TestEventHelpers:
    def test_scenario_event(self, caplog):
        with caplog.at_level(logging.INFO, logger="recipe_engine.scenario_events"):
            log_scenario_event("scenario_finished", "run-1", 3, {"status": "FAIL"})

        record = caplog.records[-1]
        assert record.getMessage() == "Scenario event: scenario_finished"
        assert record.execution_id == "run-1"
        assert record.scenario_index == 3
        assert record.status == "FAIL"

    def test_performance_metric(self, caplog):
        with caplog.at_level(logging.INFO, logger="recipe_engine.performance"):
            log_performance_metric("run_duration", 1500, context={"execution_id": "run-1"})

        record = caplog.records[-1]
        assert record.getMessage() == "Performance metric: run_duration=1500ms"
        assert record.metric_name == "run_duration"
        assert record.execution_id == "run-1"


class TestSetupLogging:
    def test_text_format_uses_rich(self, restore_root_logger):
        root = setup_logging(log_level="DEBUG", log_format="text")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)
        assert logging.getLogger("openai").level == logging.WARNING

    def test_json_format_with_file(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "run.log"

        root = setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        logging.getLogger("recipe_engine.test").info("hello", extra={"scenario_index": 2})
        for handler in root.handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert lines[-1]["message"] == "hello"
        assert lines[-1]["scenario_index"] == 2
