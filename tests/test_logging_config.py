"""
Tests for structured logging helpers
"""

import json
import logging

import pytest

from token_ledger.logging_config import (
    TEXT_FORMAT, JSONFormatter, get_logger, log_action, setup_logging
)


@pytest.fixture
def ledger_logger():
    logger = setup_logging("DEBUG", "token_ledger.test_logging")
    yield logger
    for handler in logger.handlers[:]:
        if type(handler) in (logging.StreamHandler, _Capture):
            logger.removeHandler(handler)


def _installed(logger):
    """Handlers added by setup_logging, ignoring any the test runner attaches"""
    return [h for h in logger.handlers if type(h) is logging.StreamHandler]


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestSetupLogging:
    """Test logger configuration"""

    def test_json_handler_installed(self, ledger_logger):
        assert ledger_logger.level == logging.DEBUG
        installed = _installed(ledger_logger)
        assert len(installed) == 1
        assert isinstance(installed[0].formatter, JSONFormatter)
        assert ledger_logger.propagate is False

    def test_repeated_setup_does_not_duplicate(self, ledger_logger):
        setup_logging("INFO", "token_ledger.test_logging")
        assert len(_installed(ledger_logger)) == 1
        assert ledger_logger.level == logging.INFO

    def test_reconfigure_keeps_foreign_handlers(self, ledger_logger):
        capture = _Capture()
        ledger_logger.addHandler(capture)

        setup_logging("WARNING", "token_ledger.test_logging")

        assert capture in ledger_logger.handlers
        assert len(_installed(ledger_logger)) == 1

    def test_text_format(self):
        logger = setup_logging("INFO", "token_ledger.test_text", log_format="text")
        try:
            installed = _installed(logger)
            assert len(installed) == 1
            assert installed[0].formatter._fmt == TEXT_FORMAT
        finally:
            for handler in _installed(logger):
                logger.removeHandler(handler)

    def test_get_logger(self):
        assert get_logger("token_ledger.x") is logging.getLogger("token_ledger.x")


class TestJSONFormatter:
    """Test structured output"""

    def test_structured_fields(self, ledger_logger):
        capture = _Capture()
        ledger_logger.addHandler(capture)

        log_action(
            ledger_logger, "info", "Transfer of 5",
            user_id="ab" * 32, action="transfer", extra={"value": "5"}
        )

        payload = json.loads(JSONFormatter().format(capture.records[0]))
        assert payload["message"] == "Transfer of 5"
        assert payload["level"] == "INFO"
        assert payload["action"] == "transfer"
        assert payload["user_id"] == "ab" * 32
        assert payload["extra"] == {"value": "5"}
        assert "resource" not in payload

    def test_disabled_level_is_skipped(self, ledger_logger):
        capture = _Capture()
        ledger_logger.addHandler(capture)
        ledger_logger.setLevel(logging.WARNING)

        log_action(ledger_logger, "info", "quiet")
        log_action(ledger_logger, "warning", "loud")

        assert [r.getMessage() for r in capture.records] == ["loud"]
