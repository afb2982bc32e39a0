"""Logging test fixtures."""

import pytest


@pytest.fixture(autouse=True)
def restore_logger(monkeypatch):
    """Restore the pcre2ffi logger's handlers, level and format after each test."""
    from pcre2ffi._logging import logger

    monkeypatch.setenv("PCRE2FFI_LOG_FORMAT", "json")
    handlers = logger.handlers[:]
    level = logger.level
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
