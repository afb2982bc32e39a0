"""
Logging configuration tests.

Tests for pcre2ffi._logging module.
"""

import logging


class TestSetupLogging:
    """Tests for setup_logging() function."""

    def test_setup_logging_accessible(self):
        """setup_logging is exported from pcre2ffi."""
        import pcre2ffi

        assert callable(pcre2ffi.setup_logging)

    def test_setup_logging_default_level(self):
        """setup_logging() defaults to INFO level."""
        from pcre2ffi._logging import logger, setup_logging

        setup_logging()

        assert logger.level == logging.INFO

    def test_setup_logging_accepts_string_level(self):
        """setup_logging() accepts string level names."""
        from pcre2ffi._logging import logger, setup_logging

        setup_logging("DEBUG")

        assert logger.level == logging.DEBUG

    def test_setup_logging_accepts_int_level(self):
        """setup_logging() accepts integer level constants."""
        from pcre2ffi._logging import logger, setup_logging

        setup_logging(logging.WARNING)

        assert logger.level == logging.WARNING

    def test_setup_logging_replaces_handlers(self):
        """setup_logging() replaces existing handlers."""
        from pcre2ffi._logging import logger, setup_logging

        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())

        setup_logging("INFO")

        assert len(logger.handlers) == 1

    def test_setup_logging_format_selects_formatter(self):
        """format="human" installs the human formatter."""
        from pcre2ffi._logging import HumanFormatter, logger, setup_logging

        setup_logging("INFO", format="human")

        assert isinstance(logger.handlers[0].formatter, HumanFormatter)

    def test_setup_logging_json_format(self):
        """format="json" installs the JSON formatter."""
        from pcre2ffi._logging import JsonFormatter, logger, setup_logging

        setup_logging("INFO", format="json")

        assert isinstance(logger.handlers[0].formatter, JsonFormatter)


class TestDefaultBehavior:
    """Tests for default logging behavior."""

    def test_logger_name(self):
        """Root logger is named after the package."""
        from pcre2ffi._logging import logger

        assert logger.name == "pcre2ffi"

    def test_default_level_is_warn(self, monkeypatch):
        """Without PCRE2FFI_LOG_LEVEL the library is silent below WARNING."""
        from pcre2ffi._logging import _get_log_level

        monkeypatch.delenv("PCRE2FFI_LOG_LEVEL", raising=False)

        assert _get_log_level() == logging.WARNING

    def test_level_from_environment(self, monkeypatch):
        """PCRE2FFI_LOG_LEVEL is read case-insensitively."""
        from pcre2ffi._logging import _get_log_level

        monkeypatch.setenv("PCRE2FFI_LOG_LEVEL", "DEBUG")
        assert _get_log_level() == logging.DEBUG

        monkeypatch.setenv("PCRE2FFI_LOG_LEVEL", "off")
        assert _get_log_level() > logging.CRITICAL

    def test_unknown_level_falls_back_to_warn(self, monkeypatch):
        """An unknown level name does not raise."""
        from pcre2ffi._logging import _get_log_level

        monkeypatch.setenv("PCRE2FFI_LOG_LEVEL", "chatty")

        assert _get_log_level() == logging.WARNING

    def test_format_from_environment(self, monkeypatch):
        """PCRE2FFI_LOG_FORMAT overrides TTY detection."""
        from pcre2ffi._logging import _get_log_format

        monkeypatch.setenv("PCRE2FFI_LOG_FORMAT", "HUMAN")

        assert _get_log_format() == "human"


class TestSetLogLevel:
    """Tests for pcre2ffi.set_log_level()."""

    def test_set_log_level(self):
        """set_log_level() changes the package logger level."""
        import pcre2ffi
        from pcre2ffi._logging import logger

        pcre2ffi.set_log_level("debug")
        assert logger.level == logging.DEBUG

        pcre2ffi.set_log_level("warn")
        assert logger.level == logging.WARNING

    def test_set_log_level_unknown(self):
        """Unknown names fall back to warn."""
        import pcre2ffi
        from pcre2ffi._logging import logger

        pcre2ffi.set_log_level("verbose")

        assert logger.level == logging.WARNING
