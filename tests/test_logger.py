"""Tests for studyflow/logger.py"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from studyflow.config import reload_config
from studyflow.logger import CustomFormatter, setup_logger


@pytest.fixture(autouse=True)
def fresh_config():
    reload_config()
    yield
    reload_config()


def drop_handlers(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestSetupLogger:
    def test_console_only_when_file_disabled(self, monkeypatch):
        monkeypatch.setenv("LOG_FILE_ENABLED", "false")
        reload_config()

        logger = setup_logger("StudyFlowConsoleOnly")
        try:
            assert len(logger.handlers) == 1
            assert isinstance(logger.handlers[0].formatter, CustomFormatter)
            assert logger.level == logging.INFO
        finally:
            drop_handlers(logger)

    def test_rotating_file_uses_configured_limits(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_FILE_ENABLED", "true")
        monkeypatch.setenv("LOG_DIRECTORY", str(tmp_path / "logs"))
        monkeypatch.setenv("LOG_MAX_BYTES", "1024")
        monkeypatch.setenv("LOG_BACKUP_COUNT", "2")
        reload_config()

        logger = setup_logger("StudyFlowRotating", level=logging.DEBUG)
        try:
            files = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
            assert len(files) == 1
            assert (files[0].maxBytes, files[0].backupCount) == (1024, 2)
            assert (tmp_path / "logs").is_dir()
            assert logger.level == logging.DEBUG
        finally:
            drop_handlers(logger)

    def test_repeated_setup_adds_no_handlers(self, monkeypatch):
        monkeypatch.setenv("LOG_FILE_ENABLED", "false")
        reload_config()

        logger = setup_logger("StudyFlowRepeated")
        try:
            assert setup_logger("StudyFlowRepeated") is logger
            assert len(logger.handlers) == 1
        finally:
            drop_handlers(logger)
