"""Tests for logging utilities."""

from __future__ import annotations

import logging

from inquiry_inbox.core.config import LoggingSettings
from inquiry_inbox.core.logging import configure_logging


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="debug", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_structured_logging_quiets_chatty_libraries() -> None:
    configure_logging(LoggingSettings(level="INFO", structured=True))

    root = logging.getLogger()
    assert root.level == logging.INFO
    formats = [
        handler.formatter._fmt
        for handler in root.handlers
        if handler.formatter is not None and handler.formatter._fmt
    ]
    assert any("level={levelname}" in fmt for fmt in formats)
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("inquiry_inbox.storage.sqlite").disabled is False
