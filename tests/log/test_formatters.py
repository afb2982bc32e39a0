"""
Tests for OpenTelemetry-compliant log formatters.

Tests for JsonFormatter, HumanFormatter, and scoped_logger.
"""

import json
import logging
from io import StringIO


def _record(level=logging.INFO, msg="Test message", **extra):
    record = logging.LogRecord(
        name="pcre2ffi",
        level=level,
        pathname="/site-packages/pcre2ffi/_loader.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_otel_structure(self):
        """Output follows the OpenTelemetry Logging Data Model."""
        from pcre2ffi._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record()))

        assert parsed["body"] == "Test message"
        assert parsed["severityText"] == "INFO"
        assert parsed["resource"]["service.name"] == "pcre2ffi"
        assert "service.version" in parsed["resource"]

    def test_timestamp_format(self):
        """Timestamp is RFC3339 with nanoseconds."""
        from pcre2ffi._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record()))
        timestamp = parsed["timestamp"]

        assert timestamp.endswith("Z")
        assert "T" in timestamp
        assert len(timestamp.split(".")[1]) == len("000000000Z")

    def test_warning_maps_to_warn(self):
        """Python WARNING is reported as OTel WARN."""
        from pcre2ffi._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(logging.WARNING)))

        assert parsed["severityText"] == "WARN"

    def test_extra_fields_become_attributes(self):
        """Fields passed via extra= appear under attributes."""
        from pcre2ffi._logging import JsonFormatter

        record = _record(scope="loader", path="/usr/lib/libpcre2-8.so.0")
        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["attributes"]["scope"] == "loader"
        assert parsed["attributes"]["path"] == "/usr/lib/libpcre2-8.so.0"

    def test_debug_includes_code_location(self):
        """DEBUG records carry the relative source location."""
        from pcre2ffi._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(logging.DEBUG)))

        assert parsed["attributes"]["code.filepath"] == "_loader.py"
        assert parsed["attributes"]["code.lineno"] == 42

    def test_info_omits_code_location(self):
        from pcre2ffi._logging import JsonFormatter

        parsed = json.loads(JsonFormatter().format(_record(logging.INFO)))

        assert "code.filepath" not in parsed["attributes"]


class TestHumanFormatter:
    """Tests for HumanFormatter."""

    def test_plain_output(self):
        """Without colors the line has severity, scope and message."""
        from pcre2ffi._logging import HumanFormatter

        output = HumanFormatter(use_colors=False).format(_record(scope="substitute"))

        assert "INFO" in output
        assert "[substitute]" in output
        assert "Test message" in output
        assert "\x1b[" not in output

    def test_path_shown_inline(self):
        """A library path passed as extra is appended to the message."""
        from pcre2ffi._logging import HumanFormatter

        record = _record(msg="Loaded PCRE2 library", path="/opt/lib/libpcre2-8.so")
        output = HumanFormatter(use_colors=False).format(record)

        assert "Loaded PCRE2 library (/opt/lib/libpcre2-8.so)" in output

    def test_colors(self):
        """With colors, errors are red."""
        from pcre2ffi._logging import HumanFormatter

        output = HumanFormatter(use_colors=True).format(_record(logging.ERROR))

        assert "\x1b[31m" in output


class TestScopedLogger:
    """Tests for scoped_logger()."""

    def test_scope_is_attached(self, restore_logger):
        """Every record from a scoped logger carries its scope."""
        from pcre2ffi._logging import JsonFormatter, scoped_logger

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter())
        restore_logger.addHandler(handler)
        restore_logger.setLevel(logging.DEBUG)

        scoped_logger("serialize").debug("Serialized patterns", extra={"count": 2})

        parsed = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert parsed["attributes"]["scope"] == "serialize"
        assert parsed["attributes"]["count"] == 2

    def test_call_extra_merges_with_scope(self, restore_logger):
        """extra= passed on the call does not drop the scope."""
        from pcre2ffi._logging import scoped_logger

        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        restore_logger.addHandler(Collect())
        restore_logger.setLevel(logging.DEBUG)

        scoped_logger("resource").debug("Finalizer released native handle", extra={"kind": "code"})

        assert records[-1].scope == "resource"
        assert records[-1].kind == "code"
