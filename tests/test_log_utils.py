"""Tests for the jdkfetch logger: env-driven level, level changes and file output."""

import logging
from logging.handlers import RotatingFileHandler

import pytest
from rich.logging import RichHandler

from jdkfetch import log_utils

pytestmark = [pytest.mark.unit, pytest.mark.infrastructure]


@pytest.fixture(autouse=True)
def fresh_logger():
    """Start each test from a freshly initialized logger with no file handler."""
    log_utils._file_handler = None
    log_utils._initialize_logger()
    yield log_utils.logger
    if log_utils._file_handler is not None:
        log_utils.logger.removeHandler(log_utils._file_handler)
        log_utils._file_handler.close()
        log_utils._file_handler = None
    log_utils._initialize_logger()


def _console(logger):
    return next(h for h in logger.handlers if isinstance(h, RichHandler))


class TestConsoleLogger:
    def test_single_rich_console_without_propagation(self, fresh_logger):
        log_utils._initialize_logger()

        assert fresh_logger.name == "jdkfetch"
        assert fresh_logger.propagate is False
        assert [type(h) for h in fresh_logger.handlers] == [RichHandler]

    @pytest.mark.parametrize(
        "env_value,expected",
        [("debug", logging.DEBUG), ("ERROR", logging.ERROR), ("chatty", logging.INFO)],
    )
    def test_level_from_environment(self, fresh_logger, monkeypatch, env_value, expected):
        monkeypatch.setenv("JDKFETCH_LOG_LEVEL", env_value)

        log_utils._initialize_logger()

        assert fresh_logger.level == expected
        assert _console(fresh_logger).level == expected

    def test_set_log_level_updates_console(self, fresh_logger):
        log_utils.set_log_level("warning")

        assert fresh_logger.level == logging.WARNING
        assert _console(fresh_logger).level == logging.WARNING

    def test_unknown_level_name_is_ignored(self, fresh_logger):
        log_utils.set_log_level("ERROR")
        log_utils.set_log_level("LOUDEST")

        assert fresh_logger.level == logging.ERROR


class TestFileLogging:
    def test_creates_directory_and_rotating_handler(self, fresh_logger, tmp_path):
        log_dir = tmp_path / "nested" / "logs"

        log_utils.add_file_logging(log_dir)

        handler = log_utils._file_handler
        assert log_dir.is_dir()
        assert isinstance(handler, RotatingFileHandler)
        assert handler in fresh_logger.handlers
        assert handler.baseFilename == str(log_dir / "jdkfetch.log")
        assert handler.maxBytes == 10 * 1024 * 1024
        assert handler.backupCount == 5
        assert handler.level == logging.INFO

    def test_second_call_replaces_handler(self, fresh_logger, tmp_path):
        log_utils.add_file_logging(tmp_path / "first")
        first = log_utils._file_handler

        log_utils.add_file_logging(tmp_path / "second", "DEBUG")

        file_handlers = [
            h for h in fresh_logger.handlers if isinstance(h, RotatingFileHandler)
        ]
        assert file_handlers == [log_utils._file_handler]
        assert first is not log_utils._file_handler
        assert log_utils._file_handler.level == logging.DEBUG

    def test_unknown_file_level_falls_back_to_info(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "CHATTY")

        assert log_utils._file_handler.level == logging.INFO

    def test_records_are_written(self, fresh_logger, tmp_path):
        log_utils.add_file_logging(tmp_path)

        fresh_logger.info("Resolved 21 to 21.0.4")
        log_utils._file_handler.flush()

        content = (tmp_path / "jdkfetch.log").read_text(encoding="utf-8")
        assert "INFO - Resolved 21 to 21.0.4" in content
