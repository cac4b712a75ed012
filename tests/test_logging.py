"""JSON log line formatting."""

import io
import json
import logging
import sys
from decimal import Decimal
from uuid import UUID

from asset_event_monitor.core import logging as log_setup
from asset_event_monitor.core.errors import RowParseError
from asset_event_monitor.core.logging import JsonFormatter, configure_logging


def _record(level: int, message: str, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord("asset_event_monitor.test", level, __file__, 1, message, (), exc_info)


def test_extras_are_nested_under_context() -> None:
    record = _record(logging.INFO, "asset_event_published")
    record.ticker = "EQIX"
    record.amount = Decimal("165.75")
    record.event_id = UUID("12345678-1234-5678-1234-567812345678")

    payload = json.loads(JsonFormatter(service="api").format(record))

    assert payload["message"] == "asset_event_published"
    assert payload["level"] == "INFO"
    assert payload["service"] == "api"
    assert payload["context"] == {
        "ticker": "EQIX",
        "amount": "165.75",
        "event_id": "12345678-1234-5678-1234-567812345678",
    }


def test_timestamp_comes_from_record() -> None:
    record = _record(logging.INFO, "tick")
    record.created = 0.0

    payload = json.loads(JsonFormatter().format(record))

    assert payload["timestamp"] == "1970-01-01T00:00:00.000+00:00"
    assert "service" not in payload


def test_exception_is_serialized() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(_record(logging.ERROR, "failed", exc_info)))

    assert payload["exception"]["type"] == "ValueError"
    assert payload["exception"]["message"] == "boom"
    assert "ValueError: boom" in payload["exception"]["traceback"]
    assert "context" not in payload


def test_row_error_diagnostics_are_logged() -> None:
    """A rejected row is logged with its raw cells and line number."""

    try:
        raise RowParseError("Error parsing row: insufficient columns: GOOG,SPLIT", ["GOOG", "SPLIT"], 3)
    except RowParseError:
        exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(_record(logging.ERROR, "importer_rejected", exc_info)))

    assert payload["exception"]["type"] == "RowParseError"
    assert payload["exception"]["row"] == ["GOOG", "SPLIT"]
    assert payload["exception"]["line_number"] == 3


def test_configure_logging_installs_handler_once() -> None:
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    saved_flag = getattr(root, log_setup._CONFIGURED_FLAG, False)
    setattr(root, log_setup._CONFIGURED_FLAG, False)
    stream = io.StringIO()

    try:
        configure_logging("warning", service="importer", stream=stream)
        configure_logging("debug", service="api", stream=io.StringIO())
        logging.getLogger("asset_event_monitor.test").warning("asset_import_rejected")
        handler_count = len(root.handlers)
        level = root.level
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        setattr(root, log_setup._CONFIGURED_FLAG, saved_flag)

    assert handler_count == 1
    assert level == logging.WARNING
    line = json.loads(stream.getvalue().splitlines()[-1])
    assert line["service"] == "importer"
    assert line["message"] == "asset_import_rejected"
