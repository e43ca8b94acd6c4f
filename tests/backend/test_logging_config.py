"""Tests for structured logging and settings."""

import json
import logging

import pytest
from pydantic import ValidationError

from src.web_tester.core.config import Settings
from src.web_tester.core.logging_config import (
    RunLoggerAdapter,
    StructuredFormatter,
    get_run_logger,
    setup_run_logging,
)


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_format_includes_context(self):
        record = logging.LogRecord("web_tester.runner", logging.INFO, __file__, 10, "Starting test_run", None, None)
        record.run_id = "run-1"
        record.operation = "test_run"
        record.metadata = {"tests": 3}

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["message"] == "Starting test_run"
        assert payload["level"] == "INFO"
        assert payload["run_id"] == "run-1"
        assert payload["operation"] == "test_run"
        assert payload["metadata"] == {"tests": 3}


class TestRunLogger:
    """Test the run logger adapter."""

    def test_get_run_logger_context(self, sample_run_id):
        run_logger = get_run_logger("runner", sample_run_id, "Check logo")

        assert isinstance(run_logger, RunLoggerAdapter)
        assert run_logger.logger.name == "web_tester.runner"
        assert run_logger.extra == {"run_id": sample_run_id, "test_case": "Check logo"}

    def test_operation_logging(self, sample_run_id, caplog):
        run_logger = get_run_logger("runner", sample_run_id)

        with caplog.at_level(logging.INFO, logger="web_tester.runner"):
            run_logger.log_operation_start("test_run", url="https://example.com")
            run_logger.log_operation_failure("test_run", 1.5, "boom", error_code="NavigationTimeout")

        start, failure = caplog.records[-2:]
        assert start.phase == "start"
        assert start.run_id == sample_run_id
        assert failure.levelno == logging.ERROR
        assert failure.success is False
        assert failure.error_code == "NavigationTimeout"

    def test_setup_creates_log_files(self, tmp_path):
        root_logger = logging.getLogger()
        saved_handlers = root_logger.handlers[:]
        saved_level = root_logger.level
        loggers = {}
        try:
            loggers = setup_run_logging(log_level="DEBUG", log_dir=str(tmp_path))

            assert set(loggers) == {"runner", "session", "executor", "api", "healing"}
            assert (tmp_path / "web_tester_all.log").exists()
            assert (tmp_path / "test_runs.log").exists()
            assert (tmp_path / "web_tester_errors.log").exists()
        finally:
            for handler in root_logger.handlers[:]:
                root_logger.removeHandler(handler)
                handler.close()
            for component_logger in loggers.values():
                for handler in component_logger.handlers[:]:
                    component_logger.removeHandler(handler)
                    handler.close()
            for handler in saved_handlers:
                root_logger.addHandler(handler)
            root_logger.setLevel(saved_level)


class TestSettings:
    """Test settings validation."""

    def test_defaults(self):
        settings = Settings()

        assert settings.NAVIGATION_TIMEOUT_MS == 60000
        assert settings.SETTLE_DELAY_MS == 2000
        assert settings.SELECTOR_TIMEOUT_MS == 5000

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            Settings(SELECTOR_TIMEOUT_MS=0)

    def test_normalizes_log_level(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
