"""Tests for the logging setup module."""

import logging

import pytest

from docscan.utils.logger import get_logger, log_stage, setup_logging


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("DEBUG")
        assert len(root.handlers) >= 1
        assert root.level == logging.DEBUG

        root.handlers.clear()

    def test_setup_idempotent(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("INFO")
        count = len(root.handlers)
        setup_logging("INFO")
        assert len(root.handlers) == count

        root.handlers.clear()

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()

        setup_logging("NONEXISTENT")
        assert root.level == logging.INFO

        root.handlers.clear()


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("test.module")
        assert logger.name == "test.module"
        assert isinstance(logger, logging.Logger)

    def test_same_name_returns_same_logger(self) -> None:
        assert get_logger("test.same") is get_logger("test.same")


class TestLogStage:
    """Tests for the log_stage timing context manager."""

    def test_logs_duration(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("test.stage")
        with caplog.at_level(logging.DEBUG, logger="test.stage"):
            with log_stage(logger, "ocr"):
                pass
        assert len(caplog.records) == 1
        assert caplog.records[0].getMessage().startswith("Stage ocr took ")

    def test_logs_even_when_stage_fails(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("test.stage.fail")
        with caplog.at_level(logging.DEBUG, logger="test.stage.fail"):
            with pytest.raises(RuntimeError):
                with log_stage(logger, "scan"):
                    raise RuntimeError("boom")
        assert "Stage scan took" in caplog.text
