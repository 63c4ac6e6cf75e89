"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from bundlectl.core.observability.logging_config import parse_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("ERROR") == logging.ERROR

    def test_unknown_or_empty(self):
        assert parse_level("loud") == logging.WARNING
        assert parse_level(None) == logging.WARNING
        assert parse_level("") == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_third_party_quieted(self):
        setup_logging("INFO")
        assert logging.getLogger("aiohttp.client").level == logging.WARNING

    def test_log_file(self, tmp_path: Path):
        log_file = tmp_path / "bundlectl.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

        logging.getLogger("bundlectl.test").debug("hello file")
        for h in logging.getLogger().handlers:
            h.flush()
        assert "hello file" in log_file.read_text()
