"""
Tests for logging configuration.
"""

import logging
from pathlib import Path

import pytest

from devsetup.core.observability.logging_config import (
    level_from_flags,
    setup_logging,
    setup_logging_from_env,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevelFromFlags:
    def test_debug_wins(self):
        assert level_from_flags(debug=True, verbose=True, quiet=True, environ={}) == "DEBUG"

    def test_verbose(self):
        assert level_from_flags(verbose=True, environ={}) == "INFO"

    def test_quiet(self):
        assert level_from_flags(quiet=True, environ={}) == "ERROR"

    def test_environment(self):
        assert level_from_flags(environ={"DEVSETUP_LOG_LEVEL": "INFO"}) == "INFO"

    def test_default(self):
        assert level_from_flags(environ={}) == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_invalid_level_falls_back(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_transcript(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "devsetup.log"
        setup_logging("ERROR", log_file=str(log_file))

        logging.getLogger("devsetup.test").debug("CMD apt-get update")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "CMD apt-get update" in log_file.read_text()

    def test_file_level(self, tmp_path: Path):
        log_file = tmp_path / "devsetup.log"
        setup_logging("ERROR", log_file=str(log_file), log_file_level="WARNING")

        logging.getLogger("devsetup.test").info("hidden")
        logging.getLogger("devsetup.test").warning("shown")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text()
        assert "shown" in text
        assert "hidden" not in text

    def test_from_env(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        setup_logging_from_env("WARNING", environ={"DEVSETUP_LOG_FILE": str(log_file)})
        assert len(logging.getLogger().handlers) == 2
        assert log_file.exists()
