"""JSON-lines logging for the API and importer processes."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from asset_event_monitor.core.errors import RowParseError

_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())
_CONFIGURED_FLAG = "_asset_event_monitor_configured"


def _exception_payload(formatter: logging.Formatter, exc_info: Any) -> dict[str, Any]:
    exc = exc_info[1]
    payload: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
        "traceback": formatter.formatException(exc_info),
    }
    if isinstance(exc, RowParseError):
        payload["row"] = list(exc.row)
        payload["line_number"] = exc.line_number
    return payload


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields are nested under ``context``."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if context:
            payload["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = _exception_payload(self, record.exc_info)

        # Decimal, date and UUID values fall back to str().
        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


def configure_logging(level: str = "INFO", service: str | None = None, stream: TextIO | None = None) -> None:
    """Install the JSON handler on the root logger; later calls are no-ops."""

    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG, False):
        return

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(JsonFormatter(service=service))
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
    setattr(root, _CONFIGURED_FLAG, True)
