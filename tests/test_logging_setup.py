"""Tests for the global logging setup."""

import logging

import pytest
import structlog

from igd_portmap.config import LoggingConfig
from igd_portmap.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    structlog.reset_defaults()


def test_configure_sets_level():
    configure_logging(LoggingConfig(level="warning", format="console"))
    assert logging.getLogger().level == logging.WARNING


def test_configure_with_file(tmp_path):
    log_file = tmp_path / "igd.log"

    configure_logging(LoggingConfig(level="INFO", format="json", file=log_file))
    structlog.get_logger("igd_portmap.test").info("hello", answer=42)
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = log_file.read_text()
    assert '"event": "hello"' in content
    assert '"answer": 42' in content
