import logging

import pytest
from pythonjsonlogger import jsonlogger

from admin_tables.logging_config import configure_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    root.handlers.clear()
    root.setLevel(level)


def test_json_format_is_default(root_logger, monkeypatch):
    monkeypatch.delenv("ADMIN_TABLES_LOG_FORMAT", raising=False)

    configure_logging()

    (handler,) = root_logger.handlers
    assert isinstance(handler.formatter, jsonlogger.JsonFormatter)
    assert root_logger.level == logging.INFO


def test_plain_format_from_env(root_logger, monkeypatch):
    monkeypatch.setenv("ADMIN_TABLES_LOG_FORMAT", "plain")

    configure_logging(level=logging.DEBUG)

    (handler,) = root_logger.handlers
    assert not isinstance(handler.formatter, jsonlogger.JsonFormatter)
    assert root_logger.level == logging.DEBUG


def test_force_format_wins_over_env(root_logger, monkeypatch):
    monkeypatch.setenv("ADMIN_TABLES_LOG_FORMAT", "plain")

    configure_logging(force_format="JSON")

    (handler,) = root_logger.handlers
    assert isinstance(handler.formatter, jsonlogger.JsonFormatter)
